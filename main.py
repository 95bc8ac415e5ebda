from rich.pretty import pprint

from argotree import *


app = Application("app", "file tool")
ls = app.command("list", "list things").alias("ls").mark_default()
files = ls.command("files", "list files")
files.option("color", choices=("red", "green"))
files.flag("all", short="a")
files.cardinal("path", hints=(".", "..", "~"))
app.command("debug", "internal diagnostics").mark_hidden()


if __name__ == '__main__':
    app.init()
    pprint(app)
    pprint(files.complete_position(ParseContext().matched_command(ls)))
    pprint(files.complete_flag("color", "r"))
