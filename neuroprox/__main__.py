####################################################################################################
# __main__.py
# The main function, if neuroprox is invoked directly as command.

import sys

from neuroprox.commands import (commands)

def main(argv):
    if len(argv) < 1:
        sys.stderr.write('Syntax: python -m neuroprox <command> ...; commands: %s\n'
                         % ', '.join(sorted(commands.keys())))
        return 1
    if argv[0] not in commands:
        sys.stderr.write('The given command \'' + argv[0] + '\' not recognized.\n')
        return 1
    return commands[argv[0]](argv[1:])

# Run the main function
sys.exit(main(sys.argv[1:]))
