"""Constantes HTTP et délais pour éviter les valeurs magiques dans le code.

Ce module définit les codes de statut HTTP utilisés par le transport ainsi que les délais du
protocole de synchronisation (long poll, fetch, retry).
"""

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_NOT_MODIFIED = 304
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Long poll: le serveur garde la connexion ouverte jusqu'à 10 minutes
NOTIFY_CONNECT_TIMEOUT = 10 * 60.0
DEFAULT_SYNC_TIMEOUT = 10.0

# Retry
MAX_RETRY_ATTEMPTS = 3
RETRY_BASE_DELAY = 0.5
RETRY_RANDOM_FACTOR = 0.25
