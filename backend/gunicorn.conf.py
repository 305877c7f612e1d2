# ABOUTME: Gunicorn configuration for production deployment
# ABOUTME: Serves app:create_app() with one worker process owning the SQLite connection

import os

# Bind to all interfaces on the configured port
bind = f"0.0.0.0:{os.environ.get('PORT', '5000')}"

# Number of worker processes
# One process keeps a single SQLite writer; threads serve concurrent requests
workers = 1
threads = 4

# Worker class
worker_class = "gthread"

# Market-data calls are bounded by FMP_TIMEOUT_SECONDS, well inside this
timeout = 60

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"

wsgi_app = "app:create_app()"


def worker_exit(server, worker):
    """Close the database handle when the worker shuts down"""
    app = getattr(worker, 'wsgi', None)
    extensions = getattr(app, 'extensions', {}) if app else {}
    services = extensions.get('stockinfo')
    if services is not None:
        services.db.close()
