# contentops/db/base.py
from sqlalchemy.orm import declarative_base

# Shared metadata tree for every model
Base = declarative_base()
