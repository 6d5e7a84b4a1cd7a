from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/api/health")
async def health(request: Request):
    return {"status": "ok", "env": request.app.state.settings.env_name}
