import logging
import os

from rich.console import Console
from rich.logging import RichHandler
from rich.pretty import pprint

from cly import *

logging.basicConfig(
    level=os.environ.get("CLY_LOG_LEVEL", "WARNING").upper(),
    format="%(message)s",
    handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
)

cly = App(
    "CLY",
    version="1.0.0",
    exec_name="cly",
    description="A tiny solution for tiny CLI applications.",
    for_unknown_show="error",
    unknown_msg=lambda command: f"Command not found: '{command}'",
    parse_options={"alias": {"n": "name"}, "boolean": ["debug"]},
)


@cly.default()
def hello(args):
    print("Hello, from CLY!")


@cly.command("help")
def show_help(args):
    target = str(args.positionals[1]) if len(args.positionals) > 1 else None
    if target in cly.commands:
        print(cly.commands[target].description)
    else:
        print(cly.render_help())


@cly.command({
    "command": ["greet", "hi"],
    "description": "Greets someone.\nSet the name with -n or --name.",
})
def greet(args):
    print(f"Hello, {args.get('name', 'world')}!")
    if args["debug"]:
        pprint(args)


if __name__ == '__main__':
    cly.run()
