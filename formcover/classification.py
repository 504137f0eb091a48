"""
# Structural classification of forms for instrumentation.

# &classify assigns each form a &Label that selects the wrapping procedure used by
# &.instrumentation. Classification only inspects structure; it never expands or
# evaluates the form.
"""
import enum
import logging

from . import syntax

logger = logging.getLogger(__name__)

class Label(enum.Enum):
	stop = 'stop'
	atomic = 'atomic'
	structural = 'structural'
	binding = 'binding'
	definition = 'definition'
	constructor = 'constructor'
	member = 'member'
	function = 'function'
	compound = 'compound'
	default = 'default'

# Special form symbols. They cannot be evaluated by themselves, so they are
# left alone wherever they appear as a form.
special_symbols = frozenset([
	'.', 'do', 'if', 'var', 'quote',
	'try', 'catch', 'finally', 'throw', 'recur',
	'set!', 'import*', 'new', 'def',
	'let*', 'loop*', 'fn*',
])

# Lists headed by these are never descended into.
stop_heads = frozenset([
	'var',
	'import*',
	'catch',
	'set!',
	'finally',
	'quote',
])

keywords = {
	'let*': Label.binding,
	'loop*': Label.binding,
	'def': Label.definition,
	'new': Label.constructor,
	'.': Label.member,
	'fn': Label.function,
	'fn*': Label.function,
}

Atoms = (syntax.Symbol, syntax.Keyword, str, int, float, bool, type(None))
Structures = (syntax.Vector, syntax.Map)

def classify(form) -> Label:
	"""
	# Identify the &Label of &form.
	"""
	if isinstance(form, syntax.Symbol):
		if form.name in special_symbols:
			label = Label.stop
		else:
			label = Label.atomic
	elif isinstance(form, Atoms):
		label = Label.atomic
	elif isinstance(form, Structures):
		label = Label.structural
	elif isinstance(form, syntax.List):
		name = syntax.head(form)
		if name in stop_heads:
			label = Label.stop
		else:
			label = keywords.get(name, Label.compound)
	else:
		label = Label.default

	logger.debug("type of %r is %s", form, label.value)
	return label
