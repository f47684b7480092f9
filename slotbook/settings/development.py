from .base import *

DEBUG = True

INTERNAL_IPS = ['127.0.0.1']

# Print verification codes instead of sending them
MESSAGING_BACKEND = 'apps.notifications.messaging.ConsoleBackend'

# Relax axes in dev
AXES_ENABLED = False

LOG_LEVEL = 'DEBUG'
LOGGING['loggers']['apps']['level'] = LOG_LEVEL
