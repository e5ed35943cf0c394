# -*- coding: utf-8 -*-

DEFAULT_HOST_ADDR = "192.168.0.1"  # factory IP of the LMS1xx
DEFAULT_PORT = 2111
DEFAULT_ALT_PORT = 2112
DEFAULT_TIMEOUT = 1.0  # seconds
DEFAULT_LOGLEVEL = "INFO"
TEST_LOGLEVEL = "TRACE"
SINGLE_LINE_ERR_LOG = False  # reformat tracebacks into a single line in logs

MAX_TOKEN_LENGTH = 1000  # chars, longer tokens are treated as garbage
RECV_CHUNK_SIZE = 4096  # bytes per socket recv
