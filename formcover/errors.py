"""
# Exceptions raised while instrumenting a module.
"""
from . import syntax

class InstrumentationError(Exception):
	"""
	# Base class of the failures that abort the instrumentation of a module.
	"""

class InputError(InstrumentationError, ValueError):
	"""
	# The module identifier is not a valid symbolic name, or names no resource.
	"""

	def __init__(self, identifier, reason):
		super().__init__("cannot instrument %r: %s" %(identifier, reason))
		self.identifier = identifier
		self.reason = reason

class ReadError(InstrumentationError):
	"""
	# Source text could not be read into a form.
	"""

	def __init__(self, path, line, reason):
		super().__init__("%s:%s: %s" %(path, line, reason))
		self.path = path
		self.line = line
		self.reason = reason

class WrapError(InstrumentationError):
	"""
	# A form could not be restructured for instrumentation.

	# [ Properties ]
	# /form/
		# The offending sub-form.
	# /context/
		# The enclosing form being wrapped when the failure occurred.
	# /line/
		# The line of &context, when known.
	"""

	def __init__(self, reason, form, context=None, line=None):
		msg = "%s: %s" %(reason, syntax.represent(form))
		if context is not None:
			msg += " while wrapping " + syntax.represent(context)
		if line is not None:
			msg += " at line %s" %(line,)
		super().__init__(msg)
		self.reason = reason
		self.form = form
		self.context = context
		self.line = line

class EvaluationError(InstrumentationError):
	"""
	# An instrumented top-level form raised an exception when evaluated.
	"""

	def __init__(self, rewritten:str, original:str, line=None):
		super().__init__("couldn't evaluate form %s (original: %s)" %(rewritten, original))
		self.rewritten = rewritten
		self.original = original
		self.line = line
