"""Operations API: list registered operation types."""

from fastapi import APIRouter, HTTPException

router = APIRouter()

_registry = None


def set_registry(registry):
    global _registry
    _registry = registry


@router.get("/operations")
async def list_operations():
    """List every operation the service can run."""
    if _registry is None:
        raise HTTPException(status_code=503, detail="Operation registry not initialized")
    specs = _registry.list_operations()
    return {
        "operations": [
            {
                "type": s.operation_type.value,
                "name": s.name,
                "minInputs": s.min_inputs,
                "maxInputs": s.max_inputs,
                "description": s.description,
            }
            for s in specs
        ],
        "count": len(specs),
    }
