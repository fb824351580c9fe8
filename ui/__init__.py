"""
taskloop Dashboard - HTTP control surface and live event stream

Provides:
- Task and loop-settings management over REST
- Loop start / stop / skip / status
- Real-time progress events via WebSocket
"""

__version__ = "1.0.0"
