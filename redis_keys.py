REDIS_SESSION_KEY = "admin:session:{session_id}" # session id - admin HTTP session flag

# **Example `admin:session:{id}` value**
# - ISO timestamp of the login, key expires after SESSION_TTL_SECONDS
