import multiprocessing
import os

bind = os.getenv("PORTAL_BIND", "127.0.0.1:8000")
workers = int(os.getenv("PORTAL_WORKERS", (multiprocessing.cpu_count() * 2) + 1))
worker_class = "uvicorn.workers.UvicornWorker"
wsgi_app = "app.main:app"
# Uploads up to the 100 MiB cap can take a while on slow links.
timeout = 120
graceful_timeout = 30
keepalive = 5
loglevel = os.getenv("PORTAL_LOG_LEVEL", "info")
accesslog = "-"
errorlog = "-"
forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1")
