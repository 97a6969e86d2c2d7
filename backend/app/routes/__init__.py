"""HTTP routers. Application routes live in ``v1``."""
