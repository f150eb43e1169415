from fastapi import FastAPI

from . import api


app = FastAPI(title="Padding Oracle Demo API")
app.include_router(api.router, prefix="/api")
