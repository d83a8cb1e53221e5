"""
providerlib
~~~~~~~~~~~
Shared building blocks for inventory provider plugins.
:license: Apache 2.0, see LICENSE for more details.
"""

__title__ = "providerlib"
__description__ = "Shared building blocks for inventory provider plugins."
__license__ = "Apache 2.0"
__version__ = "0.1.0"
