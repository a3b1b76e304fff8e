from core.imports import Bcrypt, Swagger, JWTManager, SQLAlchemy, CORS, Migrate, Mail, MetaData

# Stable constraint names so Flask-Migrate can alter the stock/quantity checks later
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

db = SQLAlchemy(metadata=MetaData(naming_convention=NAMING_CONVENTION))
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()
mail = Mail()
bcrypt = Bcrypt()
cors = CORS()
swagger = Swagger()
