"""
Skeleton API Application Package

A CRUD web-service skeleton: one example resource behind a middleware
pipeline with authentication, logging, recovery, rate limiting, tracing
and metrics.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine and session management
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- context.py: Per-request context shared by pipeline stages
- errors.py: Error kinds rendered through the response envelope
- middleware/: Request pipeline stages
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic and infrastructure clients
"""

__version__ = "1.0.0"
