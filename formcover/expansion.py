"""
# Desugaring of compound forms into the core forms understood by
# &.classification and &.evaluation.

# Expansion is table driven: &rules maps head symbol names to expanders, and
# &patterns handles the member and constructor shorthands whose head symbols
# are not fixed names. &normalize applies &expand1 until the form is stable.
"""
import itertools
import logging

from . import syntax
from .errors import WrapError

logger = logging.getLogger(__name__)

List = syntax.List
Vector = syntax.Vector
Symbol = syntax.Symbol

_counter = itertools.count(1)

def gensym(prefix='G__'):
	"""
	# Construct a symbol that is not expected to collide with user names.
	"""
	return Symbol('%s%d' %(prefix, next(_counter)))

def _body(forms):
	# Multiple expressions in a position that accepts one.
	forms = list(forms)
	if len(forms) == 1:
		return forms[0]
	return List([Symbol('do')] + forms)

def _rename(core):
	def expand(form):
		return List((Symbol(core),) + form.items[1:])
	return expand

def expand_defn(form):
	# (defn name doc? overloads...) -> (def name doc? (fn name overloads...))
	items = form.items[1:]
	if not items:
		return form

	name, rest = items[0], list(items[1:])
	doc = ()
	if rest and isinstance(rest[0], str) and len(rest) > 1:
		doc = (rest.pop(0),)

	fn = List([Symbol('fn'), name] + rest)
	return List((Symbol('def'), name) + doc + (fn,))

def expand_when(form):
	test, *body = form.items[1:] or (None,)
	return List((Symbol('if'), test, _body(body) if body else None))

def expand_when_not(form):
	test, *body = form.items[1:] or (None,)
	return List((Symbol('if'), test, None, _body(body) if body else None))

def expand_if_not(form):
	test = form[1] if len(form) > 1 else None
	return List((Symbol('if'), List((Symbol('not'), test))) + form.items[2:])

def expand_cond(form):
	clauses = form.items[1:]
	if not clauses:
		return None
	if len(clauses) % 2:
		raise WrapError("cond requires an even number of forms", form)

	test, then = clauses[0], clauses[1]
	if isinstance(test, syntax.Keyword):
		# :else and friends.
		return then

	rest = List((Symbol('cond'),) + clauses[2:])
	if len(clauses) > 2:
		return List((Symbol('if'), test, then, rest))
	return List((Symbol('if'), test, then))

def expand_and(form):
	operands = form.items[1:]
	if not operands:
		return True
	if len(operands) == 1:
		return operands[0]

	g = gensym('and__')
	rest = List((Symbol('and'),) + operands[1:])
	return List((Symbol('let*'), Vector((g, operands[0])), List((Symbol('if'), g, rest, g))))

def expand_or(form):
	operands = form.items[1:]
	if not operands:
		return None
	if len(operands) == 1:
		return operands[0]

	g = gensym('or__')
	rest = List((Symbol('or'),) + operands[1:])
	return List((Symbol('let*'), Vector((g, operands[0])), List((Symbol('if'), g, g, rest))))

def _thread(form, last):
	x, *steps = form.items[1:] or (None,)
	for step in steps:
		if isinstance(step, List) and len(step):
			if last:
				x = List(step.items + (x,))
			else:
				x = List((step[0], x) + step.items[1:])
		else:
			x = List((step, x))
	return x

def expand_thread_first(form):
	return _thread(form, False)

def expand_thread_last(form):
	return _thread(form, True)

def expand_comment(form):
	return None

rules = {
	'let': _rename('let*'),
	'loop': _rename('loop*'),
	'import': _rename('import*'),
	'defn': expand_defn,
	'when': expand_when,
	'when-not': expand_when_not,
	'if-not': expand_if_not,
	'cond': expand_cond,
	'and': expand_and,
	'or': expand_or,
	'->': expand_thread_first,
	'->>': expand_thread_last,
	'comment': expand_comment,
}

def expand_member(form):
	# (.method target args...) -> (. target method args...)
	name = form[0].name[1:]
	if len(form) < 2:
		return form
	return List((Symbol('.'), form[1], Symbol(name)) + form.items[2:])

def expand_constructor(form):
	# (Class. args...) -> (new Class args...)
	name = form[0].name[:-1]
	return List((Symbol('new'), Symbol(name)) + form.items[1:])

patterns = [
	(lambda name: len(name) > 1 and name[0] == '.' and name[1] != '.', expand_member),
	(lambda name: len(name) > 1 and name[-1] == '.' and name[0] != '.', expand_constructor),
]

def expander(form):
	"""
	# Select the expansion procedure for &form, or &None if it is not sugar.
	"""
	name = syntax.head(form)
	if name is None:
		return None

	if name in rules:
		return rules[name]

	for condition, procedure in patterns:
		if condition(name):
			return procedure

	return None

def expand1(form):
	"""
	# Expand &form once. Forms that are not sugar are returned as-is.
	"""
	procedure = expander(form)
	if procedure is None:
		return form

	expanded = procedure(form)
	logger.debug("expanded %r to %r", form, expanded)
	return expanded

def normalize(form):
	"""
	# Expand &form until its head is no longer sugar.
	"""
	while True:
		expanded = expand1(form)
		if expanded is form or expanded == form:
			return expanded
		form = expanded
