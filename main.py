from rich.pretty import pprint

from strata import *

__prog__ = "converter"

registry = Registry()

commands = registry.specify(0, "--")
options = registry.specify(1, "-")

convert = registry.declare("convert", commands, "convert a file")
listing = registry.declare("list", commands, "list supported formats")
source = registry.declare("in", options, "the file to read")
target = registry.declare("out", options, "the file to write")

restrictions = (
    MustContainAtLeastOneArgumentRestriction(),
    FirstArgMustBeRootRestriction(registry.root),
    UnknownArgumentsRestriction(registry),
    LegalArgumentsRestriction(
        registry,
        Grouping(convert, [source, target]),
        Grouping(listing),
    ),
    ParameterCountRestriction(1, 1, convert, source),
    ParameterCountRestriction(1, 1, convert, target),
)


if __name__ == '__main__':
    enforce(*restrictions, shell=True, fancy=True)

    if found(convert):
        pprint({
            "in": params([convert, source]),
            "out": params([convert, target]),
        })
    elif found(listing, SearchOptions.WITHOUT_CHILDREN):
        pprint(registry.arguments)
