# Infrastructure routes (unversioned modules, mounted under /api/v1 in main.py)
# All application routes are in v1/
from . import prometheus as prometheus
