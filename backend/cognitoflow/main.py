# SPDX-FileCopyrightText: 2024-2025 Pathway Bio, Inc. <https://pwbio.ai>
# SPDX-FileContributor: Kimberly Robasky
# SPDX-License-Identifier: Apache-2.0

"""
cognitoflow - FastAPI Application Entry Point
"""
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import logging
from contextlib import asynccontextmanager
from mangum import Mangum

from cognitoflow import __version__
from cognitoflow.utils.config_loader import config_loader
from cognitoflow.utils.config_types import AppConfig

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Load configuration once at startup
try:
    app_config = config_loader.load_config()
except RuntimeError as e:
    logger.error(f"Failed to load configuration: {e}")
    app_config = AppConfig()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: report the Cognito pool in use"""
    logger.info("Starting cognitoflow...")

    environment = config_loader.get_environment()
    cognito = app_config.cognito
    logger.info(
        f"Environment: {environment}, userPool={cognito.user_pool}, "
        f"identityPool={cognito.identity_pool}, region={cognito.region}"
    )
    if not cognito.identity_pool:
        logger.warning("⚠️ identityPool not configured, logins will fail at the credentials exchange")

    app.state.config = app_config
    app.state.config_loader = config_loader

    yield

    logger.info("Shutting down cognitoflow...")

# Create FastAPI application
app = FastAPI(
    title="cognitoflow API",
    description="Login and verification workflows over AWS Cognito",
    version=__version__,
    lifespan=lifespan
)

# Lambda runs with lifespan="off", so state is set here too
app.state.config_loader = config_loader
app.state.config = app_config

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_config.cors.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    """Health check endpoint"""
    return {"message": "cognitoflow API is running", "status": "healthy"}

@app.get("/health")
async def health_check():
    """Detailed health check"""
    try:
        return {
            "status": "healthy",
            "service": "cognitoflow",
            "version": __version__,
            "environment": app.state.config_loader.get_environment()
        }
    except RuntimeError as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unhealthy")

# Import and include routers
from cognitoflow.routes import auth
app.include_router(auth.router, prefix="/api")

# AWS Lambda entry point; local development runs uvicorn below
handler = Mangum(app, lifespan="off")

if __name__ == "__main__":
    import uvicorn

    server_config = app_config.server
    uvicorn.run(app, host=server_config.host, port=server_config.port)
