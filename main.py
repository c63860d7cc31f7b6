import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from vspheredb.api.vcenters import router as vcenters_router
from vspheredb.api.vcenter_servers import router as vcenter_servers_router
from vspheredb.api.vms import router as vms_router

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"status": "ok", "message": "vspheredb running"}


# include routers implemented in vspheredb/api
app.include_router(vcenters_router)
app.include_router(vcenter_servers_router)
app.include_router(vms_router)
