"""
# Instrument and execute modules, then report the execution count of each
# instrumented line.

# Modules are processed in the order given; each is evaluated in its own namespace.

# [ Environment ]
# /`FORMCOVER_PATH`/
	# Source directories separated by &os.pathsep.
# /`FORMCOVER_DUMP`/
	# Directory receiving the text of the instrumented forms.
# /`FORMCOVER_LOG`/
	# Logging level name; `WARNING` by default.
"""
import os
import sys
import argparse
import logging

from .. import module
from .. import trace
from ..errors import InstrumentationError

logger = logging.getLogger(__name__)

def arguments(environ=os.environ):
	p = argparse.ArgumentParser(
		prog='formcover',
		description="Instrument and run modules, reporting per-line execution counts.",
	)
	p.add_argument('modules', nargs='+', metavar='module',
		help="module identifiers, for instance project.core")
	p.add_argument('-p', '--path', action='append', default=None,
		help="source directory; may be repeated (default: FORMCOVER_PATH or the current directory)")
	p.add_argument('-d', '--dump', default=environ.get('FORMCOVER_DUMP') or None,
		help="directory to write the instrumented forms to")
	p.add_argument('-v', '--verbose', action='store_true',
		help="log at the INFO level")
	return p

def report(collector, out=None):
	out = out if out is not None else sys.stdout
	for (name, line), count in collector.lines().items():
		out.write('%s:%d %d\n' %(name, line, count))

def main(argv=None, environ=os.environ) -> int:
	options = arguments(environ).parse_args(argv)

	level = 'INFO' if options.verbose else environ.get('FORMCOVER_LOG', 'WARNING')
	logging.basicConfig(level=level.upper(), format="%(levelname)s %(name)s: %(message)s")

	path = options.path or module.search_path(environ)
	collector = trace.Collector()

	try:
		for name in options.modules:
			module.instrument(collector, name, path=path, dump=options.dump)
	except InstrumentationError as err:
		logger.debug("instrumentation failed", exc_info=True)
		sys.stderr.write('formcover: %s\n' %(err,))
		return 1

	report(collector)
	return 0

if __name__ == '__main__':
	sys.exit(main())
