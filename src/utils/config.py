"""Environment-driven settings.

Values are read at import time; call load_dotenv() before importing this module
to pick up a .env file.
"""

import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


MONGO_URL = os.getenv('MONGO_URL')
DATABASE_NAME = os.getenv('MONGODB_DATABASE', 'car_leasing')

BCRYPT_ROUNDS = int(os.getenv('BCRYPT_ROUNDS', '13'))
TOKEN_TTL_MINUTES = int(os.getenv('TOKEN_TTL_MINUTES', '10'))
# passwordChangedAt is stamped this far in the past so a session token issued
# in the same second as the change is not treated as stale.
PASSWORD_CHANGE_SKEW_SECONDS = float(os.getenv('PASSWORD_CHANGE_SKEW_SECONDS', '1'))
PROMOTE_ON_APPROVAL = _env_bool('PROMOTE_ON_APPROVAL', False)
