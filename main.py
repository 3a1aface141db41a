from fastapi import FastAPI
from settings.config import settings
from db.db_operation import create_indexes
from core.exceptions import register_exception_handlers
from utils.logger import get_logger
from routes import auth, user_routes, restaurant_routes, deal_routes, admin_routes

logger = get_logger("main")

app = FastAPI(title="Foodie Restaurant API", version="1.0.0")
register_exception_handlers(app)

@app.get("/")
async def health_check():
    logger.info("Health check is successful")
    return {
        "status": "ok",
        "app": settings.PROJECT_NAME,
        "message": "Foodie API Running"
    }

@app.on_event("startup")
async def startup_event():
    await create_indexes()

app.include_router(auth.router)
app.include_router(user_routes.router)
app.include_router(restaurant_routes.router)
app.include_router(deal_routes.router)
app.include_router(admin_routes.router)
