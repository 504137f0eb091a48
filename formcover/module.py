"""
# Module instrumentation: locate a module's source, then read, wrap, and evaluate
# its top-level forms in order.

# Forms are evaluated immediately after they are wrapped as later forms may depend
# on the definitions established by earlier ones.
"""
import os
import re
import contextlib
import logging

from . import syntax
from . import metadata
from . import source
from . import evaluation
from . import instrumentation
from .errors import InputError, ReadError, WrapError, EvaluationError

logger = logging.getLogger(__name__)

suffix = '.lisp'

# Module currently being instrumented; for diagnostics.
instrumenting = None

identifier_pattern = re.compile(r'^[A-Za-z_*+!?<>=$][A-Za-z0-9_*+!?<>=$-]*(\.[A-Za-z_*+!?<>=$][A-Za-z0-9_*+!?<>=$-]*)*$')

def identifier(name) -> str:
	"""
	# Validate the module identifier &name, a &syntax.Symbol or &str, returning its text.
	"""
	if isinstance(name, syntax.Symbol):
		name = name.name
	elif not isinstance(name, str):
		raise InputError(name, "module identifier must be a symbol")

	if not identifier_pattern.match(name):
		raise InputError(name, "module identifier must be a symbol")
	return name

def resource_path(name) -> str:
	"""
	# The relative path of the source of module &name.
	"""
	name = identifier(name)
	return name.replace('-', '_').replace('.', os.sep) + suffix

def search_path(environ=os.environ):
	"""
	# The source directories named by `FORMCOVER_PATH`; the current directory when unset.
	"""
	value = environ.get('FORMCOVER_PATH')
	if not value:
		return [os.getcwd()]
	return [x for x in value.split(os.pathsep) if x]

def locate(name, path=None) -> str:
	"""
	# Find the source file of module &name in the directories of &path.
	"""
	relative = resource_path(name)
	if path is None:
		path = search_path()

	for directory in path:
		candidate = os.path.join(str(directory), relative)
		if os.path.isfile(candidate):
			return candidate

	raise InputError(identifier(name), "no %s found in %s" %(relative, os.pathsep.join(map(str, path))))

@contextlib.contextmanager
def selection(name):
	"""
	# Set &instrumenting to &name for the duration of the context.
	"""
	global instrumenting
	previous = instrumenting
	instrumenting = name
	try:
		yield name
	finally:
		instrumenting = previous

def store(forms, name, directory):
	"""
	# Write the text of the instrumented &forms of module &name into &directory.
	"""
	os.makedirs(str(directory), exist_ok=True)
	target = os.path.join(str(directory), identifier(name) + suffix)
	with open(target, 'w', encoding='utf-8') as f:
		for form in forms:
			f.write(syntax.represent(form))
			f.write('\n')
	return target

def decode(file, encoding='utf-8') -> str:
	"""
	# Read the text of the source &file.
	"""
	with open(file, 'rb') as f:
		data = f.read()

	try:
		return data.decode(encoding).replace('\r\n', '\n')
	except UnicodeDecodeError as err:
		line = data.count(b'\n', 0, err.start) + 1
		raise ReadError(file, line, str(err)) from err

def execute(probe, forms, namespace, path='<string>'):
	"""
	# Wrap and evaluate each of &forms in order, generating the wrapped forms.
	"""
	for form in forms:
		line = metadata.line(form)

		try:
			wrapped = instrumentation.wrap(probe, line, form)
		except WrapError as err:
			logger.error("couldn't wrap form %r at line %r of %s (%s)", form, line, instrumenting, path)
			raise WrapError(err.reason, err.form, form, line) from err

		try:
			evaluation.evaluate(wrapped, namespace)
		except Exception as err:
			raise EvaluationError(
				syntax.represent(wrapped),
				syntax.represent(metadata.original(wrapped)),
				line=line,
			) from err

		logger.debug("evaluated %r", wrapped)
		yield wrapped

def instrument(collector, name, path=None, dump=None, namespace=None, encoding='utf-8'):
	"""
	# Read the forms of module &name, returning the sequence of rewritten forms after
	# having evaluated each of them.

	# [ Parameters ]
	# /collector/
		# The &.trace.Collector supplying the probe.
	# /name/
		# The module identifier; a &syntax.Symbol or &str.
	# /path/
		# Directories to search for the module's source. Defaults to &search_path.
	# /dump/
		# Directory to write the instrumented forms to; nothing is written when &None.
	# /namespace/
		# The &evaluation.Namespace to evaluate the forms in. A new one named after
		# the module is created when &None.
	"""
	name = identifier(name)
	file = locate(name, path=path)
	if namespace is None:
		namespace = evaluation.Namespace(name)
	collector.install(namespace)

	logger.info("instrumenting %s from %s", name, file)
	with selection(name):
		text = decode(file, encoding)
		forms = list(execute(collector.probe(name), source.parse(text, file), namespace, path=file))

	if dump is not None:
		target = store(forms, name, dump)
		logger.info("wrote instrumented forms of %s to %s", name, target)

	logger.info("instrumented %d forms of %s", len(forms), name)
	return forms
