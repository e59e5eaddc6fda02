# Logging event codes / response error codes
INVALID_JSON_BODY = 'INVALID_JSON_BODY'
INVALID_BATCH = 'INVALID_BATCH'
NO_LINKS_CREATED = 'NO_LINKS_CREATED'
LINKS_CREATED = 'LINKS_CREATED'
