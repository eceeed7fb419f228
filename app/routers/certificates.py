from fastapi import APIRouter

from app.crud.certificates import certificate_crud
from app.schemas.certificates import CertificateVerifyResponse

router = APIRouter(prefix="/certificates", tags=["Certificates"])


@router.get("/verify/{certificate_id}", response_model=CertificateVerifyResponse)
async def verify_certificate(certificate_id: str):
    """Public: anyone holding a certificate id can check it."""
    return await certificate_crud.verify_certificate(certificate_id)
