import uvicorn

from guobiao_assist.config import settings

if __name__ == "__main__":
    uvicorn.run("guobiao_assist.main:app", host="0.0.0.0", port=8000, log_level=settings.log_level.lower())
