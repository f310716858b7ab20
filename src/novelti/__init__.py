from .version import __version__ as __version__

__title__ = "Novelti"
__description__ = "A caching, normalizing search layer over the Google Books API."
__url__ = "https://github.com/keeley1/novelti-backend"
__author__ = "Novelti contributors"
__license__ = "Apache-2.0"
