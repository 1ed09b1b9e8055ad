"""Gunicorn configuration for production deployment (gunicorn -c gunicorn.conf.py wsgi:app)."""
import os

# Server socket
bind = os.environ.get('GUNICORN_BIND', '0.0.0.0:8000')

# Worker processes: 2 workers with 4 threads each.
# SQLite serializes writers; booking writes take the lock with BEGIN IMMEDIATE.
workers = int(os.environ.get('GUNICORN_WORKERS', 2))
threads = int(os.environ.get('GUNICORN_THREADS', 4))
worker_class = 'gthread'

# Must exceed PAYMENT_GATEWAY_TIMEOUT plus DATABASE_TIMEOUT
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logging (application log goes to logs/turfbook.log)
accesslog = 'logs/gunicorn-access.log'
errorlog = 'logs/gunicorn-error.log'
loglevel = os.environ.get('GUNICORN_LOG_LEVEL', 'info')
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(D)s'

proc_name = 'turfbook'

# Each worker builds its own app, gateway connection pool and SQLite connections
preload_app = False

max_requests = 1000
max_requests_jitter = 50
