from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.core.config import settings
from app.api.http.health import router as health_router
from app.api.http.auth import router as auth_router
from app.api.http.notebooks import router as notebooks_router
from app.api.http.pages import router as pages_router
from app.api.http.collaborators import router as collaborators_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


app = FastAPI(
    title="Notebooks",
    description="Совместные блокноты: дерево страниц и соавторы",
    version="1.0.0"
)

# Настройка CORS для работы с frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Подключаем роутеры
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(notebooks_router)
app.include_router(pages_router)
app.include_router(collaborators_router)


@app.get("/")
async def root():
    """Корневой эндпоинт"""
    return {
        "message": "Notebooks API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
