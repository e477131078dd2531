from contextlib import asynccontextmanager
from datetime import datetime
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException

# ==================== IMPORTS ====================
import admin
import analytics
import surveys
import views
from db import StoreError, store
from schemas import ErrorResponse

# Carregar variáveis de ambiente
load_dotenv()

LOG_FILE = os.getenv("LOG_FILE", "logs/info.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
INIT_SCHEMA = os.getenv("INIT_SCHEMA", "1").strip().lower() in ("1", "true", "yes", "on")

logger.add(LOG_FILE, rotation="1 week", retention="4 weeks", level=LOG_LEVEL)

# ==================== STARTUP/SHUTDOWN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 API iniciando...")
    if INIT_SCHEMA:
        try:
            store.init_schema()
        except StoreError as e:
            logger.error(f"❌ Não foi possível preparar o banco: {e}")

    try:
        chord = views.KeyChord.parse(views.ADMIN_SHORTCUT)
    except ValueError as e:
        logger.error(f"❌ ADMIN_SHORTCUT inválido ({views.ADMIN_SHORTCUT!r}): {e}. Usando {views.DEFAULT_SHORTCUT}")
        chord = views.KeyChord.parse(views.DEFAULT_SHORTCUT)

    try:
        with app.state.shortcuts.listen(chord, views.toggle_admin):
            logger.info("✅ API pronta para receber requisições!")
            yield
    finally:
        store.dispose()
        logger.info("🛑 API encerrando...")


# Criar aplicação FastAPI
app = FastAPI(
    title="Data Needs Assessment",
    description="Pre-meeting survey and admin dashboard",
    version="1.0.0",
    lifespan=lifespan,
)
app.state.shortcuts = views.ShortcutRegistry()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(views.router)
app.include_router(surveys.router, tags=["Survey"])
app.include_router(admin.router, tags=["Admin"])
app.include_router(analytics.router, tags=["Analytics"])

# ==================== ROTAS BÁSICAS ====================

@app.get("/health", tags=["Health Check"])
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": "1.0.0"
    }

# ==================== TRATAMENTO DE ERROS ====================

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.error(f"HTTP Error: {exc.status_code} - {exc.detail}")
    body = ErrorResponse(error=str(exc.detail), status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Erro não tratado: {exc}")
    body = ErrorResponse(error="Erro interno do servidor", status_code=500)
    return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True, log_level="info")
