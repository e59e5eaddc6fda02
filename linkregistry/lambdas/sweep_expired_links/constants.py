# Diagnostic response statuses
SUCCESS = 'success'
ERROR = 'error'
