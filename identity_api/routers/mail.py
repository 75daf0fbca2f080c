"""
Mail router.

  POST /mail/send  → send a message as the app's sender address; signed-in users only
"""
import logging
import time

from fastapi import APIRouter, Depends

from identity_api.core.dependencies import get_current_session
from identity_api.schemas.auth import SessionClaims
from identity_api.schemas.mail import MailSendRequest, MailSendResponse
from identity_api.services.email_service import Mailer, get_mailer

logger = logging.getLogger(__name__)
router = APIRouter()

PLAIN_TEXT_FALLBACK = "This email requires HTML support"


@router.post("/send", response_model=MailSendResponse)
async def send_mail(
    body: MailSendRequest,
    claims: SessionClaims = Depends(get_current_session),
    mailer: Mailer = Depends(get_mailer),
):
    started = time.perf_counter()
    attachments = None
    if body.attachments:
        attachments = [
            {"filename": a.filename, "content": a.content, "type": a.content_type}
            for a in body.attachments
        ]

    message_id = await mailer.send(
        [str(r) for r in body.to],
        body.subject,
        body.html,
        text=body.text or PLAIN_TEXT_FALLBACK,
        cc=[str(r) for r in body.cc] if body.cc else None,
        bcc=[str(r) for r in body.bcc] if body.bcc else None,
        reply_to=str(body.reply_to) if body.reply_to else None,
        attachments=attachments,
    )
    duration_ms = round((time.perf_counter() - started) * 1000)
    logger.info(f"User {claims.id} sent mail {message_id} to {len(body.to)} recipient(s) in {duration_ms}ms")
    return {"success": True, "message_id": message_id, "duration": f"{duration_ms}ms"}
