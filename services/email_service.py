"""
Email Service

Sends coach application emails (pending, approved, rejected) over SMTP.
"""

import asyncio
import html
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Any, Dict, Optional

from config.settings import settings
from utils.logger import setup_logger

logger = setup_logger(__name__)

PALETTE = {
    "dark_green": "#2E4A32",
    "medium_green": "#88A76C",
    "light_orange": "#FCCF94",
    "light_cream": "#F5E4C3",
    "dark_grey": "#555555",
    "accept_green": "#4CAF50",
    "decline_red": "#F44336",
}

THEMES = {
    "approval": {"header": PALETTE["medium_green"], "emoji": "🎉", "accent": PALETTE["accept_green"]},
    "rejection": {"header": PALETTE["light_orange"], "emoji": "💌", "accent": PALETTE["decline_red"]},
    "default": {"header": PALETTE["medium_green"], "emoji": "🍽️", "accent": PALETTE["medium_green"]},
}

APPROVAL_SUBJECT = "🎉 Welcome Coach - You're Approved!"
REJECTION_SUBJECT = "💌 Your BiteWise Coach Application"
PENDING_SUBJECT = "⏳ Your Application is Being Reviewed"


def render_email(title: str, content: str, theme: str = "default") -> str:
    """Wrap ``content`` in the branded BiteWise layout."""
    colors = THEMES.get(theme, THEMES["default"])
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{title}</title>
<style>
body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; background: {PALETTE['light_cream']}; padding: 20px; }}
.email-container {{ max-width: 400px; margin: 0 auto; background: #FFFFFF; border-radius: 20px; overflow: hidden; }}
.header {{ background: {colors['header']}; color: #FFFFFF; padding: 30px 20px; text-align: center; }}
.header .emoji {{ font-size: 50px; display: block; }}
.content {{ padding: 30px 25px; text-align: center; color: {PALETTE['dark_grey']}; }}
.content h2 {{ color: {PALETTE['dark_green']}; }}
.cute-box {{ background: {PALETTE['light_cream']}; padding: 20px; border-radius: 15px; margin: 20px 0; border: 2px solid {colors['accent']}; }}
.cute-box h3 {{ color: {colors['accent']}; }}
.button {{ display: inline-block; background: {colors['accent']}; color: #FFFFFF; padding: 12px 25px; border-radius: 25px; text-decoration: none; }}
.footer {{ background: {PALETTE['dark_green']}; color: #FFFFFF; padding: 20px; text-align: center; font-size: 12px; }}
</style>
</head>
<body>
<div class="email-container">
<div class="header"><span class="emoji">{colors['emoji']}</span><h1>{title}</h1><p>BiteWise</p></div>
<div class="content">{content}</div>
<div class="footer"><p><strong>BiteWise Team</strong></p><p>Your Smart Guide to Healthy Eating 💚</p></div>
</div>
</body>
</html>"""


def approval_body(coach_name: str) -> str:
    name = html.escape(coach_name)
    return render_email("Welcome Coach!", f"""
<h2>Congratulations {name}! 🎊</h2>
<p>You're now an official BiteWise coach!</p>
<div class="cute-box"><h3>✅ You're All Set!</h3>
<p>Your coach verification is complete and you can start helping clients right away!</p></div>
<p><strong>Your coach perks:</strong></p>
<ul><li>Verified coach badge</li><li>Client management tools</li><li>Direct messaging</li></ul>
<a href="https://bitewise.app/coach-dashboard" class="button">Start Coaching 🚀</a>
""", "approval")


def rejection_body(coach_name: str, reason: Optional[str] = None) -> str:
    name = html.escape(coach_name)
    reason_html = f"<p><strong>Reason:</strong> {html.escape(reason)}</p>" if reason else ""
    return render_email("Application Update", f"""
<h2>Hi {name}! 👋</h2>
<p>Thank you for wanting to join our coaching family!</p>
<div class="cute-box"><h3>📝 Application Update</h3>
<p>We've reviewed your application but can't approve it right now.</p>{reason_html}</div>
<div class="cute-box"><h3>🔄 Fresh Start!</h3>
<p>Your account has been reset so you can create a new one and try again with better credentials!</p></div>
<ul><li>Get the right certifications</li><li>Create a new account</li><li>Apply again when ready</li></ul>
<a href="https://bitewise.app/signup" class="button">Create New Account 🆕</a>
""", "rejection")


def pending_body(coach_name: str) -> str:
    name = html.escape(coach_name)
    return render_email("Application Review", f"""
<h2>Hi {name}! 👋</h2>
<p>Thanks for applying to be a BiteWise coach!</p>
<div class="cute-box"><h3>🔍 Under Review</h3>
<p>Our team is checking your application. This usually takes 3-5 days.</p></div>
<a href="https://bitewise.app/profile" class="button">Check Your Profile 👤</a>
<p>We'll email you as soon as we're done! 📧</p>
""")


class EmailService:
    """Service for sending emails"""

    def __init__(self):
        self.smtp_server = settings.smtp_server
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.email_user
        self.smtp_password = settings.email_app_password
        self.from_name = settings.email_from_name

    def send_email(self, to_email: str, subject: str, html_content: str) -> Dict[str, Any]:
        """
        Send an email.

        Returns {"success": True, "messageId": ...} or {"success": False, "error": ...}.
        """
        if not self.smtp_username or not self.smtp_password:
            logger.warning(f"Email credentials not configured, not sending '{subject}' to {to_email}")
            return {"success": False, "error": "Email credentials not configured"}

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = formataddr((self.from_name, self.smtp_username))
            msg['To'] = to_email
            msg['Message-ID'] = make_msgid(domain="bitewise.app")
            msg.attach(MIMEText(html_content, 'html', 'utf-8'))

            with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=30) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Email '{subject}' sent to {to_email}")
            return {"success": True, "messageId": msg['Message-ID']}

        except Exception as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return {"success": False, "error": str(e)}

    async def send_async(self, to_email: str, subject: str, html_content: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self.send_email, to_email, subject, html_content)

    async def send_coach_approval(self, coach_email: str, coach_name: str) -> Dict[str, Any]:
        return await self.send_async(coach_email, APPROVAL_SUBJECT, approval_body(coach_name))

    async def send_coach_rejection(
        self,
        coach_email: str,
        coach_name: str,
        reason: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self.send_async(coach_email, REJECTION_SUBJECT, rejection_body(coach_name, reason))

    async def send_coach_pending(self, coach_email: str, coach_name: str) -> Dict[str, Any]:
        return await self.send_async(coach_email, PENDING_SUBJECT, pending_body(coach_name))
