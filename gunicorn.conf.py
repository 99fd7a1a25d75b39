"""Gunicorn production configuration for the Fleet Desk API."""
import multiprocessing

wsgi_app = "fleetdesk.main:app"
chdir = "backend"
bind = "0.0.0.0:8000"
workers = multiprocessing.cpu_count() * 2 + 1
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
# Bulk imports write up to 500 rows inside one request.
timeout = 180
keepalive = 5
max_requests = 1000
max_requests_jitter = 100
preload_app = True
accesslog = "-"
errorlog = "-"
loglevel = "info"
