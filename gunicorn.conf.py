import os

# Run with: gunicorn -c gunicorn.conf.py "skillhub.main:create_app()"

# Server socket
bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"
backlog = 2048

# Worker processes
workers = int(os.getenv('WORKERS', 2))
worker_class = os.getenv('WORKER_CLASS', 'uvicorn.workers.UvicornWorker')
worker_connections = 1000
timeout = int(os.getenv('WORKER_TIMEOUT', 60))
keepalive = int(os.getenv('KEEP_ALIVE', 2))

# Restart workers
max_requests = int(os.getenv('MAX_REQUESTS', 1000))
max_requests_jitter = int(os.getenv('MAX_REQUESTS_JITTER', 100))
# Each worker builds its own registry and connection pools in the app lifespan
preload_app = False

# Logging
loglevel = os.getenv('LOG_LEVEL', 'info').lower()
accesslog = '-' if os.getenv('ACCESS_LOG', 'true').lower() == 'true' else None
errorlog = '-'
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = 'skillhub-api'

# Server mechanics
daemon = False
chdir = os.getenv('APP_DIR', '/app')

# Hooks
def on_starting(server):
    server.log.info("Starting SkillHub API server...")

def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)

def worker_abort(worker):
    worker.log.info("Worker received SIGABRT signal")
