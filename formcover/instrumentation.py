"""
# Form manipulations for injecting coverage probes.

# &wrap rewrites a form into an equivalent form whose instrumentable sub-forms are
# enclosed in probe calls. The probe is a callable taking a line and a form and
# returning the form that records the execution; &construct_probe builds the common
# `(symbol line form)` variant.

# [ Engineering ]
# Structural containers, vectors and maps, are descended into but are not wrapped
# themselves, so coverage of a literal container is implied by its elements.
"""
import functools
import logging

from . import syntax
from . import metadata
from . import expansion
from .classification import Label, classify
from .errors import WrapError

logger = logging.getLogger(__name__)

List = syntax.List
Vector = syntax.Vector

def construct_probe(symbol:str):
	"""
	# Create a probe that encloses forms in a call to &symbol passing the line
	# and the form: `(symbol line form)`.
	"""
	name = syntax.Symbol(symbol)

	def probe(line, form):
		return List((name, line, form))

	return probe

def wrap(probe, hint, form):
	"""
	# Rewrite &form so that evaluating it records the execution of its sub-forms with &probe.

	# [ Parameters ]
	# /probe/
		# Callable taking a line and a form, returning the enclosing probe call.
	# /hint/
		# The line to use when &form has none of its own.
	# /form/
		# The form to instrument.
	"""
	line = metadata.line(form)
	if line is None:
		line = hint

	result = handlers[classify(form)](probe, line, form)
	if result is form:
		return form

	return metadata.merge_provenance(form, result, line)

def nearest(form, line):
	"""
	# The line of &form, or &line when it has none.
	"""
	own = metadata.line(form)
	return line if own is None else own

def wrapper(probe, line):
	"""
	# Return a function that wraps its argument with &probe and &line.
	"""
	return functools.partial(wrap, probe, line)

def enclose(probe, line, form, rebuilt):
	"""
	# Enclose the replacement of &form, &rebuilt, in a probe call after attaching
	# the line and provenance of &form.
	"""
	return probe(line, metadata.merge_provenance(form, rebuilt, line))

def wrap_stop(probe, line, form):
	# Special forms and quotations; evaluation semantics would change if descended.
	return form

def wrap_default(probe, line, form):
	logger.warning("don't know how to wrap %r (line %r)", form, line)
	return form

def wrap_atomic(probe, line, form):
	return probe(line, form)

def wrap_structural(probe, line, form):
	w = wrapper(probe, line)
	if isinstance(form, syntax.Map):
		return syntax.Map((w(k), w(v)) for k, v in form.pairs)
	return syntax.rebuild(form, map(w, form))

def wrap_binding(probe, line, form):
	# (let* [name value ...] body...)
	if len(form) < 2 or not isinstance(form[1], Vector):
		raise WrapError("binding form requires a binding vector", form, line=line)

	bindings = form[1]
	if len(bindings) % 2:
		raise WrapError("binding vector requires an even number of forms", bindings, form, line)

	w = wrapper(probe, line)
	v = wrapper(probe, nearest(bindings, line))
	pairs = []
	for name, value in zip(bindings.items[0::2], bindings.items[1::2]):
		pairs.append(name)
		pairs.append(v(value))

	bindings = metadata.merge_provenance(bindings, Vector(pairs), line)
	return enclose(probe, line, form, List((form[0], bindings) + tuple(map(w, form.items[2:]))))

def wrap_definition(probe, line, form):
	# (def name), (def name init), or (def name "doc" init)
	if len(form) < 2 or not isinstance(form[1], syntax.Symbol):
		raise WrapError("definition requires a symbol name", form, line=line)

	if len(form) == 2:
		rebuilt = List(form.items)
	elif len(form) == 3:
		rebuilt = List(form.items[:2] + (wrap(probe, line, form[2]),))
	elif len(form) == 4 and isinstance(form[2], str):
		rebuilt = List(form.items[:3] + (wrap(probe, line, form[3]),))
	else:
		raise WrapError("too many forms in definition", form, line=line)

	return enclose(probe, line, form, rebuilt)

def wrap_constructor(probe, line, form):
	# (new Class args...)
	if len(form) < 2:
		raise WrapError("constructor call requires a class", form, line=line)

	w = wrapper(probe, line)
	return enclose(probe, line, form, List(form.items[:2] + tuple(map(w, form.items[2:]))))

def wrap_member(probe, line, form):
	# (. target member args...) or (. target (member args...))
	if len(form) < 3:
		raise WrapError("member access requires a target and a member", form, line=line)

	selector = form[2]
	if isinstance(selector, List):
		if not len(selector) or len(form) > 3:
			raise WrapError("malformed member call", selector, form, line)

		logger.debug("list member form, recursing on %r", selector.items[1:])
		w = wrapper(probe, nearest(selector, line))
		call = List((selector[0],) + tuple(map(w, selector.items[1:])))
		call = metadata.merge_provenance(selector, call, line)
		return enclose(probe, line, form, List(form.items[:2] + (call,)))
	else:
		logger.debug("simple member form, recursing on %r", form.items[3:])
		w = wrapper(probe, line)
		return enclose(probe, line, form, List(form.items[:3] + tuple(map(w, form.items[3:]))))

def check_parameters(parameters, group, form, line):
	symbols = [x for x in parameters if isinstance(x, syntax.Symbol)]
	if len(symbols) != len(parameters):
		raise WrapError("parameters must be symbols", group, form, line)

	names = [x.name for x in symbols]
	if '&' in names and names.index('&') != len(names) - 2:
		raise WrapError("'&' must precede exactly one parameter", group, form, line)

def wrap_overload(probe, line, parameters, body, group, form):
	"""
	# Wrap the body of a single overload, `([parameters] body...)`, leaving
	# the parameter vector as-is.

	# The body of a parenthesized overload uses the line of &group when it has one.
	"""
	check_parameters(parameters, group, form, line)
	if isinstance(group, List):
		line = nearest(group, line)

	logger.debug("wrapping overload %r %r", parameters, body)
	return (parameters,) + tuple(map(wrapper(probe, line), body))

def wrap_function(probe, line, form):
	# (fn name? [parameters] body...) or (fn name? ([parameters] body...)...)
	head, *rest = form.items
	name = ()
	if rest and isinstance(rest[0], syntax.Symbol):
		name = (rest.pop(0),)

	if not rest:
		raise WrapError("function requires at least one overload", form, line=line)

	if isinstance(rest[0], Vector):
		overloads = wrap_overload(probe, line, rest[0], rest[1:], rest[0], form)
	else:
		overloads = []
		for group in rest:
			if not isinstance(group, List) or not len(group) or not isinstance(group[0], Vector):
				raise WrapError("malformed overload", group, form, line)
			wrapped = List(wrap_overload(probe, line, group[0], group.items[1:], group, form))
			overloads.append(metadata.merge_provenance(group, wrapped, line))
		overloads = tuple(overloads)

	return enclose(probe, line, form, List((head,) + name + overloads))

def wrap_compound(probe, line, form):
	"""
	# Normalize &form and wrap the result. Forms that remain unrecognized compounds are
	# wrapped positionally; others are dispatched again by their new classification.
	"""
	expanded = expansion.normalize(form)
	if expanded is not form and classify(expanded) is not Label.compound:
		return wrap(probe, line, metadata.merge_provenance(form, expanded, line))

	wrapped = List(map(wrapper(probe, line), expanded))
	return enclose(probe, line, form, wrapped)

handlers = {
	Label.stop: wrap_stop,
	Label.atomic: wrap_atomic,
	Label.structural: wrap_structural,
	Label.binding: wrap_binding,
	Label.definition: wrap_definition,
	Label.constructor: wrap_constructor,
	Label.member: wrap_member,
	Label.function: wrap_function,
	Label.compound: wrap_compound,
	Label.default: wrap_default,
}
