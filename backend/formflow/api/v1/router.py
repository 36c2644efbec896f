from fastapi import APIRouter

from formflow.api.v1.endpoints import fields, forms, responses, vectors

api_v1_router = APIRouter()

api_v1_router.include_router(forms.router, prefix="/forms", tags=["forms"])
api_v1_router.include_router(fields.router, prefix="/fields", tags=["fields"])
api_v1_router.include_router(responses.router, prefix="/responses", tags=["responses"])
api_v1_router.include_router(vectors.router, prefix="/vectors", tags=["vectors"])
