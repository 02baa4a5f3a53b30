"""HTML templates for the OAuth client views.

Placeholders are filled with ``str.format``; callers escape values before
formatting. Literal braces in the CSS are doubled.

Theme colors:
- Background: #FAF9F7 (warm cream)
- Primary: #D97756 (terracotta)
- Text: #1A1915 (dark charcoal)
- Secondary text: #6B6860
- Border: #E5E4E0
"""

_STYLE = """
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
               background: #FAF9F7;
               min-height: 100vh; display: flex; align-items: center; justify-content: center; margin: 0; }}
        .container {{ background: white; padding: 40px; border-radius: 16px; box-shadow: 0 4px 24px rgba(0,0,0,0.08);
                     width: 100%; max-width: 640px; border: 1px solid #E5E4E0; }}
        h1 {{ margin: 0 0 8px; color: #1A1915; font-size: 24px; font-weight: 600; }}
        p {{ color: #6B6860; margin: 0 0 16px; }}
        .label {{ color: #6B6860; font-size: 13px; text-transform: uppercase; letter-spacing: 0.04em; }}
        .value {{ font-family: monospace; color: #1A1915; word-break: break-all; margin: 4px 0 16px; }}
        .error {{ background: #FEF2F2; color: #B91C1C; padding: 12px; border-radius: 8px; margin-bottom: 20px; border: 1px solid #FECACA; }}
        pre {{ background: #F5F5F0; padding: 12px; border-radius: 8px; overflow-x: auto; }}
        .actions a {{ display: inline-block; margin-right: 12px; padding: 10px 16px; background: #D97756; color: white;
                     border-radius: 8px; text-decoration: none; font-weight: 600; }}
        .actions a:hover {{ background: #C4684A; }}
    </style>
"""

_ACTIONS = """
        <div class="actions">
            <a href="/authorize">Get OAuth Token</a>
            <a href="/fetch_resource">Get Protected Resource</a>
            <a href="/refresh">Refresh Token</a>
        </div>
"""

INDEX_PAGE = """
<!DOCTYPE html>
<html>
<head>
    <title>OAuth Client</title>
""" + _STYLE + """
</head>
<body>
    <div class="container">
        <h1>OAuth Client</h1>
        <div class="label">Access token value</div>
        <div class="value">{access_token}</div>
        <div class="label">Scope value</div>
        <div class="value">{scope}</div>
        <div class="label">Refresh token value</div>
        <div class="value">{refresh_token}</div>
        <div class="label">ID token subject</div>
        <div class="value">{id_token_subject}</div>
        <div class="label">ID token issuer</div>
        <div class="value">{id_token_issuer}</div>
""" + _ACTIONS + """
    </div>
</body>
</html>
"""

ERROR_PAGE = """
<!DOCTYPE html>
<html>
<head>
    <title>Error - OAuth Client</title>
""" + _STYLE + """
</head>
<body>
    <div class="container">
        <h1>Error</h1>
        <div class="error">{error}</div>
""" + _ACTIONS + """
    </div>
</body>
</html>
"""

DATA_PAGE = """
<!DOCTYPE html>
<html>
<head>
    <title>Protected Resource - OAuth Client</title>
""" + _STYLE + """
</head>
<body>
    <div class="container">
        <h1>Protected Resource</h1>
        <p>Data from protected resource:</p>
        <pre>{resource}</pre>
""" + _ACTIONS + """
    </div>
</body>
</html>
"""
