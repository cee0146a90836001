"""
Remote scripts for the file operations.

Each function returns MicroPython source to be sent through the raw REPL.
Paths are interpolated literally inside single quotes; callers must not pass
paths containing a quote.
"""

BEGIN_MARKER = "<BEGINREC>"
END_MARKER = "<ENDREC>"

LIST_FILES_TEMPLATE = r"""
from os import listdir
print('<BEGINREC>')
print(listdir({ARGS}))
print('<ENDREC>')
"""

LOAD_FILE_TEMPLATE = r"""
print('<BEGINREC>')
with open('{PATH}', 'r') as f:
    line = f.readline()
    while line != '':
        print(line, end='')
        line = f.readline()
print('<ENDREC>')
"""

REMOVE_FILE_TEMPLATE = r"""
from os import remove
remove('{PATH}')
"""

RENAME_FILE_TEMPLATE = r"""
from os import rename
rename('{OLD}', '{NEW}')
"""

# Free as much heap as possible before the literals start arriving
COLLECT_GARBAGE = "import gc\ngc.collect()"


def list_files_code(path=None):
    args = "" if path is None else f"'{path}'"
    return LIST_FILES_TEMPLATE.replace("{ARGS}", args)


def load_file_code(path):
    return LOAD_FILE_TEMPLATE.replace("{PATH}", path)


def remove_file_code(path):
    return REMOVE_FILE_TEMPLATE.replace("{PATH}", path)


def rename_file_code(old_path, new_path):
    return RENAME_FILE_TEMPLATE.replace("{OLD}", old_path).replace("{NEW}", new_path)


def _literal_body(line):
    # A triple quote inside the line is left alone and ends the literal early.
    body = line.replace("\\", "\\\\")
    if body.endswith('"'):
        body = body[:-1] + '\\"'
    return body


def write_file_code(path, content):
    """Script writing `content` to `path` on the board.

    `content` is split on CRLF. Every line becomes its own triple-quoted
    f.write() followed by f.write('\\n'), except the last line which gets no
    newline.
    """
    code = f"f = open('{path}', 'w')\n"
    code += COLLECT_GARBAGE + "\n"
    lines = content.split("\r\n")
    for count, line in enumerate(lines):
        code += f'f.write("""{_literal_body(line)}""")\n'
        if count != len(lines) - 1:
            code += "f.write('\\n')\n"
    code += "f.close()\n"
    return code
