from html import escape
from urllib.parse import urlencode

CONFIRMATION_SUBJECT = "🎉 Your Spot is Secured - Hyperkit Waitlist Confirmation"

_TRACKING = {"utm_source": "email", "utm_medium": "confirmation", "utm_campaign": "waitlist"}


def short_wallet(wallet_address: str) -> str:
    return f"{wallet_address[:6]}...{wallet_address[-4:]}"


def tracked_url(url: str, **extra: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode({**_TRACKING, **extra})}"


def confirmation_email_html(email: str, wallet_address: str, confirmation_url: str, entry_id: str, app_url: str) -> str:
    confirm_link = escape(tracked_url(confirmation_url, entry_id=entry_id), quote=True)
    website_link = escape(tracked_url(app_url), quote=True)
    logo_url = escape(f"{app_url}/logo/brand/hyperkit/Hyperkit-logo.png", quote=True)
    return f"""
    <div style='font-family: Inter, Arial, sans-serif; line-height:1.6; max-width:600px; margin:0 auto; color:#111827'>
        <img src="{logo_url}" alt="Hyperkit" width="140" style="margin:24px 0"/>
        <h2>🎉 Spot Secured!</h2>
        <p>Thank you for joining the Hyperkit waitlist! Your spot has been secured.</p>
        <p>This email serves as proof that you've successfully registered for early access to Hyperkit Studio.</p>
        <table style='margin:16px 0;border-collapse:collapse'>
            <tr><td style='padding:4px 12px 4px 0;color:#6b7280'>Email</td><td>{escape(email)}</td></tr>
            <tr><td style='padding:4px 12px 4px 0;color:#6b7280'>Wallet</td><td>{escape(short_wallet(wallet_address))}</td></tr>
        </table>
        <p>We'll notify you when Beta Wave 1 launches. Stay tuned for updates!</p>
        <p style='margin:24px 0'>
            <a href="{confirm_link}" style='background:#111827;color:#ffffff;padding:12px 24px;border-radius:8px;text-decoration:none'>Confirm your email</a>
        </p>
        <p style='font-size:12px;color:#6b7280'>
            If you didn't request this, please ignore this email.
            This is an automated message from <a href="{website_link}">Hyperkit</a>.
        </p>
    </div>
    """.strip()


def confirmation_email_text(email: str, wallet_address: str, confirmation_url: str) -> str:
    return f"""
🎉 Spot Secured!

Your Hyperkit Waitlist Confirmation

Thank you for joining the Hyperkit waitlist! Your spot has been secured.

Registration Details:
Email: {email}
Wallet: {short_wallet(wallet_address)}

What's Next?
We'll notify you when Beta Wave 1 launches. Stay tuned for updates!

Confirm Your Email:
{confirmation_url}

If you didn't request this, please ignore this email.
This is an automated message from Hyperkit.
""".strip()
