"""Obra ERP - 薪資按比例計算與累計 API"""
import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from planilla.config import settings
from planilla.routers import payroll

logging.basicConfig(
    level=settings.resolved_log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Payroll proration and accumulation engine",
    version="1.0.0",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(payroll.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    if isinstance(exc, HTTPException):
        raise exc
    logger.exception("未處理之例外: %s %s", request.method, request.url.path)
    detail = str(exc) if exc else "Internal Server Error"
    return JSONResponse(
        status_code=500,
        content={"detail": detail},
    )


@app.get("/")
def home():
    return {"message": "Planilla en ejecución"}
