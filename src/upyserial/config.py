import os

# Default baud rate. Can be overridden by CLI --baud or env UPYSERIAL_BAUD
BAUD = int(os.environ.get("UPYSERIAL_BAUD", "115200"))

# Full tracebacks and debug logging from the CLI
DEBUG = os.environ.get("UPYSERIAL_DEBUG") == "1"

# Seconds the CLI waits for the end sentinel after a transmission
OUTPUT_TIMEOUT = float(os.environ.get("UPYSERIAL_TIMEOUT", "8.0"))

# Largest write the device reliably absorbs in one go
SLICE_SIZE = 256

# Delay between two paced writes, in seconds
PACING_UNIT = 0.010

# Reader thread poll timeout, in seconds
READ_TIMEOUT = 0.1
