import logging
import uvicorn
from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from config import CORS_ORIGINS, SEED_TEST_DATA
from database import create_tables, delete_tables
from router.application import router as application_router
from router.event import router as event_router
from router.notification import router as notification_router
from services.email import EmailClient
from services.notifications import NotificationDispatcher
from services.scheduler import SweepScheduler
from services.sweeper import ExpiredEventSweeper
from services.transitions import ApplicationTransitionService
from init_test_data import init_all_test_data


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if SEED_TEST_DATA:
        await delete_tables()
        logger.info("Database tables dropped")
    await create_tables()
    logger.info("Database tables ready")
    if SEED_TEST_DATA:
        await init_all_test_data()
    yield
    await app.state.sweep_scheduler.wait_idle()
    await app.state.transition_service.drain()
    await app.state.email_client.aclose()
    logger.info("Shutdown complete")


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="ImpactoLocal API",
        version="1.0.0",
        description="Candidaturas de voluntariado e conclusão automática de eventos",
        routes=app.routes,
    )
    openapi_schema["components"]["securitySchemes"] = {
        "Bearer": {
            "type": "http",
            "scheme": "bearer"
        }
    }
    
    secured_paths = [
        {"path": "/applications/create", "method": "post"},
        {"path": "/applications/manage", "method": "post"},
        {"path": "/applications/my-applications", "method": "get"},
        {"path": "/applications/event/{event_id}", "method": "get"},
        {"path": "/applications/{application_id}", "method": "get"},
        {"path": "/events/process-expired", "method": "post"},
        {"path": "/notifications", "method": "get"},
        {"path": "/notifications/{notification_id}/read", "method": "post"},
    ]
    
    for item in secured_paths:
        path = item["path"]
        method = item["method"]
        
        if path in openapi_schema["paths"] and method in openapi_schema["paths"][path]:
            openapi_schema["paths"][path][method]["security"] = [{"Bearer": []}]
    
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app = FastAPI(lifespan=lifespan)
app.openapi = custom_openapi

app.state.email_client = EmailClient()
app.state.transition_service = ApplicationTransitionService(NotificationDispatcher(app.state.email_client))
app.state.sweep_scheduler = SweepScheduler(ExpiredEventSweeper())

app.include_router(application_router)
app.include_router(event_router)
app.include_router(notification_router)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)



if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        reload=True,
        port=3001,
        host="0.0.0.0"
    )
