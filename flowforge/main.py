from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from flowforge import __version__
from flowforge.api.routes import router
from flowforge.core import config

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="FlowForge API",
    description="Execution engine for visual node/edge workflows",
    version=__version__
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "FlowForge API",
        "version": __version__,
        "docs": "/docs",
        "config": config.config_summary(),
        "endpoints": {
            "save_workflow": "POST /api/v1/workflows",
            "list_workflows": "GET /api/v1/workflows",
            "get_workflow": "GET /api/v1/workflows/{workflow_id}",
            "delete_workflow": "DELETE /api/v1/workflows/{workflow_id}",
            "run_workflow": "POST /api/v1/workflows/{workflow_id}/run",
            "run_graph": "POST /api/v1/run",
            "validate_graph": "POST /api/v1/validate",
            "node_types": "GET /api/v1/node-types",
            "proxy": "POST /api/v1/proxy",
            "demo_sample": "POST /api/v1/demo/sample"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
