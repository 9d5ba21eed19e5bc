import logging, smtplib, requests
from email.mime.text import MIMEText

from flask import current_app

log = logging.getLogger(__name__)


def send_mail(to: str, subject: str, body: str):
    """Send a plain-text mail. Without SMTP settings the message is only logged."""
    cfg = current_app.config
    if not cfg.get("SMTP_HOST"):
        log.info(f"SMTP not configured; mail to {to}: {subject}\n{body}")
        return
    m = MIMEText(body)
    m["Subject"] = subject
    m["From"] = cfg.get("SMTP_FROM") or cfg.get("SMTP_USER") or "noreply@localhost"
    m["To"] = to
    with smtplib.SMTP(cfg["SMTP_HOST"], cfg["SMTP_PORT"], timeout=5) as s:
        s.starttls()
        if cfg.get("SMTP_USER") and cfg.get("SMTP_PASS"):
            s.login(cfg["SMTP_USER"], cfg["SMTP_PASS"])
        s.send_message(m)


def notify(msg: str):
    """Best-effort alert to Slack and/or the alert mailbox."""
    cfg = current_app.config
    try:
        if cfg.get("SLACK_WEBHOOK_URL"):
            requests.post(cfg["SLACK_WEBHOOK_URL"], json={"text": msg}, timeout=5)
    except requests.RequestException as e:
        log.warning(f"Slack notify failed: {e}")
    try:
        if cfg.get("SMTP_HOST") and cfg.get("ALERT_EMAIL_TO"):
            send_mail(cfg["ALERT_EMAIL_TO"], f"[{cfg['SITE_NAME']}] Notification", msg)
    except (smtplib.SMTPException, OSError) as e:
        log.warning(f"Email notify failed: {e}")
