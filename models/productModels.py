from core.extensions import db
from core.timestamps import utcnow
from core.money import format_money

# Largest value db.Integer holds on every supported backend (32-bit on PostgreSQL and MySQL)
MAX_INTEGER = 2**31 - 1


class Products(db.Model):
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="stock_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    price = db.Column(db.Numeric(10, 2), nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(db.String(100), nullable=True, index=True)
    image = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def is_in_stock(self, quantity=1):
        return self.stock >= quantity

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": format_money(self.price),
            "stock": self.stock,
            "category": self.category,
            "image": self.image,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Product {self.name}>"
