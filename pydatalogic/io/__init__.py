from .capture import start_capture, stop_capture
from .socket import BlockingSocket, Socket
from .log_levels import LOG_LEVEL_IO
