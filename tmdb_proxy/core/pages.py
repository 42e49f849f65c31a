"""
Static pages served by the proxy.
"""

DISGUISE_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>404 Not Found</title>
    <style>
        body { font-family: Arial, sans-serif; text-align: center; padding: 50px; background: #f5f5f5; }
        .error { font-size: 72px; color: #999; margin-bottom: 20px; }
        .message { font-size: 18px; color: #666; margin-bottom: 30px; }
    </style>
</head>
<body>
    <div class="error">404</div>
    <div class="message">Page Not Found</div>
</body>
</html>
"""
