# stratify_api/infrastructure/email/templates.py


def otp_subject(app_name: str) -> str:
    return f"Your {app_name} verification code"


def otp_text(code: str, ttl_minutes: int) -> str:
    return (
        f"Your verification code is {code}.\n"
        f"This code will expire in {ttl_minutes} minutes.\n\n"
        "Didn't request this code? You can safely ignore this email."
    )


def otp_html(email: str, code: str, ttl_minutes: int, app_name: str) -> str:
    username = email.split("@")[0]
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Verify your email</title>
</head>
<body style="margin: 0; padding: 0; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background-color: #f8fafc; line-height: 1.6;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width: 520px; margin: 0 auto; padding: 60px 20px;">
    <tr>
      <td style="text-align: center;">
        <h1 style="margin: 0 0 12px; font-size: 28px; font-weight: 700; color: #0f172a;">Welcome to {app_name}!</h1>
        <p style="margin: 0 0 28px; font-size: 16px; color: #475569;">Hi {username},</p>
        <p style="margin: 0 0 16px; font-size: 15px; color: #334155;">
          To get started, please verify your email address by entering the code below.
        </p>
        <p style="margin: 0 0 32px; font-size: 14px; color: #64748b;">
          This code will expire in <strong style="color: #0f172a;">{ttl_minutes} minutes</strong>.
        </p>
        <table role="presentation" cellspacing="0" cellpadding="0" style="margin: 0 auto;">
          <tr>
            <td style="background: #0f172a; padding: 20px 36px; border-radius: 12px;">
              <span style="color: white; font-size: 34px; font-weight: 700; letter-spacing: 8px; font-family: 'SF Mono', Monaco, monospace;">{code}</span>
            </td>
          </tr>
        </table>
        <p style="margin: 32px 0 0; font-size: 13px; color: #64748b;">
          Didn't request this code? You can safely ignore this email.
        </p>
      </td>
    </tr>
  </table>
</body>
</html>"""
