# Logging event codes / response error codes
SHORT_LINK_NOT_FOUND = 'SHORT_LINK_NOT_FOUND'
UNSUPPORTED_ROUTE = 'UNSUPPORTED_ROUTE'
