# cierres/models/__init__.py

from .cierre import Cierre
from .alerta import Alerta
from .inbox_raw import InboxRaw
from .extraction_cache import IAExtractionCache
