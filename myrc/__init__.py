r"""
                 _   _____________
   ____ ___  __ / | / / ____/ ____/
  / __ `__ \/ // |/ / /_/ / /
 / / / / / / // /|  / _, _/ /___
/_/ /_/ /_/\_, /_/ |_/_/ |_|\____/
         /____/

myrc - a small line-oriented multi-client chat server.

Clients connect over plain TCP, pick a nickname with /name, and then
chat, whisper and pick a display color.
"""

__version__ = "1.0.0"
