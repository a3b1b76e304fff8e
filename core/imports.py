from flask import Flask, request, jsonify, Blueprint, render_template, current_app
from flask_jwt_extended import create_access_token, get_jwt_identity, jwt_required, JWTManager
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from flask_migrate import Migrate
from sqlalchemy import MetaData, text, func, update, select, or_
from sqlalchemy.orm import selectinload
from flask_bcrypt import Bcrypt
from flasgger import Swagger
from flask_mail import Mail, Message
from flask_cors import CORS
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
import threading
import re
