from fastapi import FastAPI
from .routes.compliance import router as compliance_router
from .routes.renewals import router as renewals_router
from .routes.vendors import router as vendors_router

app = FastAPI(
    title="VendorCheck Compliance & Risk Engine",
    description="Rule evaluation, renewal risk and vendor intelligence endpoints",
    version="0.1.0",
)

app.include_router(compliance_router)
app.include_router(renewals_router)
app.include_router(vendors_router)

@app.get("/health")
def health():
    return {"ok": True}
