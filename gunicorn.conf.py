# gunicorn.conf.py
import os

# Worker configuration
workers = int(os.getenv("GUNICORN_WORKERS", 2))
worker_class = "gthread"
threads = int(os.getenv("GUNICORN_THREADS", 4))
timeout = int(os.getenv("GUNICORN_TIMEOUT", 120))
keepalive = 2
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

# Process naming
proc_name = "connectup-api"

# Bind address (PORT is set by the hosting platform)
bind = os.getenv("GUNICORN_BIND", f"0.0.0.0:{os.getenv('PORT', '8000')}")

wsgi_app = "connectup.wsgi:application"

# Graceful shutdown on SIGTERM
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", 30))

forwarded_allow_ips = "*"
