import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from beautybook.core import config
from beautybook.core.errors import register_exception_handlers
from beautybook.database import Base, engine, ensure_appointment_schema, ensure_blocked_time_schema
from beautybook.models import appointment, blocked_time, service, transaction, user  # noqa: F401
from beautybook.routes import admin_routes, artist_routes, auth_routes, client_routes, public_routes

logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

app = FastAPI(title='BeautyBook API', debug=config.DEBUG)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

register_exception_handlers(app)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
        ensure_blocked_time_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'BeautyBook API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(client_routes.router, prefix='/client')
app.include_router(artist_routes.router, prefix='/artist')
app.include_router(public_routes.router)
app.include_router(admin_routes.router, prefix='/admin')
