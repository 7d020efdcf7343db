from .notifications import NotificationManager
from .mailer import Mailer

__all__ = ['NotificationManager', 'Mailer']
