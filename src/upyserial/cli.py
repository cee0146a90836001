import argparse
import logging
import os
import sys

from . import config
from .errors import describe_error
from .output import OutputCollector, clean_output, extract_payload, parse_listing
from .session import SerialConnection

# The raw REPL closes every response with EOT followed by its prompt
RAW_RESPONSE_END = "\x04>"


def run_remote(args, action, timeout=None):
    """Open `args.port`, call `action(session)` and return everything the board printed.

    Waits for the transmission to finish, then for the end of the raw REPL
    response (or `timeout` seconds).
    """
    timeout = config.OUTPUT_TIMEOUT if timeout is None else timeout
    collector = OutputCollector(RAW_RESPONSE_END)
    errors = []
    session = SerialConnection(baudrate=args.baud)
    session.on("output", collector)
    session.on("error", errors.append)
    session.open(args.port)
    try:
        done = action(session)
        if done is not None:
            done.result(timeout=timeout)
            collector.wait(timeout)
    finally:
        session.close()
    if errors:
        raise errors[0]
    return collector.text


def _fail(text):
    sys.stderr.write(clean_output(text) or "Command failed on the board")
    sys.exit(1)


def _check(text):
    if "Traceback" in text:
        _fail(text)


def to_crlf(text):
    return text.replace("\r\n", "\n").replace("\n", "\r\n")


def _read_local(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def cmd_devs(args):
    ports = [p.device for p in SerialConnection.list_available()]
    sys.stdout.write("\n".join(ports))


def cmd_ls(args):
    out = run_remote(args, lambda s: s.list_files(args.path))
    payload = extract_payload(out)
    if payload is None:
        _fail(out)
    sys.stdout.write("\n".join(parse_listing(payload)))


def cmd_cat(args):
    out = run_remote(args, lambda s: s.load_file(args.path))
    payload = extract_payload(out)
    if payload is None:
        _fail(out)
    sys.stdout.write(payload)


def cmd_put(args):
    content = _read_local(args.src)
    if not content:
        sys.stderr.write(f"Nothing to upload: {args.src} is empty")
        return
    _check(run_remote(args, lambda s: s.write_file(args.dst, to_crlf(content))))


def cmd_rm(args):
    _check(run_remote(args, lambda s: s.remove_file(args.path)))


def cmd_mv(args):
    _check(run_remote(args, lambda s: s.rename_file(args.src, args.dst)))


def _run_code(args, code):
    out = run_remote(args, lambda s: s.execute(code))
    sys.stdout.write(clean_output(out))


def cmd_exec(args):
    _run_code(args, args.code)


def cmd_run(args):
    _run_code(args, _read_local(args.src))


def cmd_stop(args):
    run_remote(args, lambda s: s.stop())


def cmd_reset(args):
    run_remote(args, lambda s: s.soft_reset())


def cmd_repl(args):
    # Hand the terminal to miniterm to keep full interactivity
    os.execvp(sys.executable, [sys.executable, "-m", "serial.tools.miniterm", args.port, str(args.baud)])


def build_parser():
    ap = argparse.ArgumentParser(prog="upyserial", description="MicroPython raw REPL over a serial port")
    ap.add_argument("--baud", type=int, default=config.BAUD,
                    help="Baud rate (default: $UPYSERIAL_BAUD or 115200; may be ignored on USB CDC)")
    sub = ap.add_subparsers(dest="cmd", required=True)

    def command(name, func, summary, *options, port=True):
        p = sub.add_parser(name, help=summary)
        p.set_defaults(func=func)
        if port:
            p.add_argument("--port", required=True)
        # "name?" is optional
        for option in options:
            p.add_argument(f"--{option.rstrip('?')}", required=not option.endswith("?"), default=None)
        return p

    command("devs", cmd_devs, "List serial ports with a USB vendor id", port=False)
    command("ls", cmd_ls, "List a directory on the board", "path?")
    command("cat", cmd_cat, "Print a file from the board", "path")
    command("put", cmd_put, "Upload a local file", "src", "dst")
    command("rm", cmd_rm, "Remove a file on the board", "path")
    command("mv", cmd_mv, "Rename a file on the board", "src", "dst")
    command("run", cmd_run, "Run a local script on the board", "src")
    command("exec", cmd_exec, "Run a code snippet on the board", "code")
    command("stop", cmd_stop, "Interrupt the running program")
    command("reset", cmd_reset, "Soft reset the board")
    command("repl", cmd_repl, "Open an interactive terminal (miniterm)")
    return ap


def main(argv=None):
    logging.basicConfig(
        level=logging.DEBUG if config.DEBUG else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except Exception as e:
        # UPYSERIAL_DEBUG=1 shows the traceback instead
        if config.DEBUG:
            raise
        message, status = describe_error(e)
        sys.stderr.write(message)
        sys.exit(status)


if __name__ == "__main__":
    main()
