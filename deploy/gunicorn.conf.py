# Form instances, cached lists and pending toasts live in process memory; run a single worker.
wsgi_app = "paperswift.main:app"
bind = "127.0.0.1:5173"
workers = 1
worker_class = "uvicorn.workers.UvicornWorker"
timeout = 60
graceful_timeout = 30
keepalive = 5
loglevel = "info"
accesslog = "-"
errorlog = "-"
