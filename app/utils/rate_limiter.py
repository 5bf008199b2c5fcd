from slowapi import Limiter
from slowapi.util import get_remote_address

# Per-client limiter for the endpoints that spend model quota
limiter = Limiter(key_func=get_remote_address)
