"""
# Evaluation of forms.

# A small interpreter used to run instrumented forms immediately after they are
# rewritten. Names resolve through lexical &Scope chains, the &Namespace of the
# module, the &core functions, and finally Python's &builtins; dotted symbols
# select attributes of the resolved object, which provides access to imported
# Python modules.

# Only `nil` and `false` are false.
"""
import builtins
import importlib
import functools
import operator
import logging

from . import syntax
from . import expansion

logger = logging.getLogger(__name__)

class InterpretationError(Exception):
	"""
	# A form could not be evaluated: unbound symbols, arity mismatches, and malformed
	# special forms.
	"""

class Recur(Exception):
	"""
	# Raised by `recur` and caught by the nearest enclosing loop or function.
	"""

	def __init__(self, arguments):
		super().__init__(arguments)
		self.arguments = arguments

def truthy(value):
	return value is not None and value is not False

class Scope(object):
	"""
	# Lexical bindings.
	"""
	__slots__ = ('bindings', 'parent')

	def __init__(self, bindings, parent=None):
		self.bindings = bindings
		self.parent = parent

	def find(self, name):
		s = self
		while s is not None:
			if name in s.bindings:
				return s
			s = s.parent
		return None

class Var(object):
	"""
	# Reference to a namespace binding produced by `(var name)` and `def`.
	"""

	def __init__(self, namespace, name):
		self.namespace = namespace
		self.name = name

	def deref(self):
		return self.namespace.bindings[self.name]

	def __eq__(self, other):
		return isinstance(other, Var) and (other.namespace, other.name) == (self.namespace, self.name)

	def __hash__(self):
		return hash((self.namespace.name, self.name))

	def __repr__(self):
		return "#'%s/%s" %(self.namespace.name, self.name)

class Namespace(object):
	"""
	# Global bindings of a module.
	"""

	def __init__(self, name='user'):
		self.name = name
		self.bindings = {}

	def define(self, name, value):
		self.bindings[name] = value
		return Var(self, name)

	def __repr__(self):
		return '<Namespace %s>' %(self.name,)

class Function(object):
	"""
	# Closure created by `fn`.

	# [ Properties ]
	# /overloads/
		# Sequence of `(parameters, rest, body)` triples; &rest is the name bound
		# to the remaining arguments or &None.
	"""

	def __init__(self, name, overloads, namespace, scope):
		self.name = name
		self.overloads = overloads
		self.namespace = namespace
		self.scope = scope

	def select(self, count):
		variadic = None
		for overload in self.overloads:
			parameters, rest, body = overload
			if rest is None and len(parameters) == count:
				return overload
			elif rest is not None and count >= len(parameters):
				variadic = overload

		if variadic is None:
			raise InterpretationError("wrong number of args (%d) passed to %r" %(count, self))
		return variadic

	def __call__(self, *arguments):
		overload = self.select(len(arguments))
		parameters, rest, body = overload
		bindings = dict(zip(parameters, arguments))
		if rest is not None:
			bindings[rest] = list(arguments[len(parameters):])

		while True:
			if self.name is not None:
				bindings.setdefault(self.name, self)

			try:
				return evaluate_body(body, self.namespace, Scope(bindings, self.scope))
			except Recur as r:
				expected = len(parameters) + (0 if rest is None else 1)
				if len(r.arguments) != expected:
					raise InterpretationError(
						"mismatched argument count to recur, expected %d args, got %d" %(
							expected, len(r.arguments)
						)
					)
				names = list(parameters) + ([] if rest is None else [rest])
				bindings = dict(zip(names, r.arguments))

	def __repr__(self):
		return '#<fn %s>' %(self.name or 'anonymous',)

def _subtract(*args):
	if len(args) == 1:
		return -args[0]
	return functools.reduce(operator.sub, args)

def _divide(*args):
	if len(args) == 1:
		return 1 / args[0]
	return functools.reduce(operator.truediv, args)

def _chain(op):
	def compare(*args):
		return all(op(x, y) for x, y in zip(args, args[1:]))
	return compare

def _text(value):
	if value is None:
		return ''
	elif value is True:
		return 'true'
	elif value is False:
		return 'false'
	elif isinstance(value, str):
		return value
	elif isinstance(value, (syntax.Symbol, syntax.Keyword, syntax.Sequence, syntax.Map)):
		return syntax.represent(value)
	return str(value)

def _get(collection, key, default=None):
	if collection is None:
		return default
	try:
		return collection[key]
	except (KeyError, IndexError, TypeError):
		return default

def _conj(collection, *items):
	if collection is None:
		return list(items)
	if isinstance(collection, dict):
		result = dict(collection)
		result.update(items)
		return result
	return list(collection) + list(items)

def _apply(f, *args):
	return f(*(args[:-1] + tuple(args[-1])))

core = {
	'+': lambda *args: functools.reduce(operator.add, args, 0),
	'-': _subtract,
	'*': lambda *args: functools.reduce(operator.mul, args, 1),
	'/': _divide,
	'mod': operator.mod,
	'quot': operator.floordiv,
	'=': _chain(operator.eq),
	'not=': lambda *args: not _chain(operator.eq)(*args),
	'<': _chain(operator.lt),
	'>': _chain(operator.gt),
	'<=': _chain(operator.le),
	'>=': _chain(operator.ge),
	'not': lambda x: not truthy(x),
	'inc': lambda x: x + 1,
	'dec': lambda x: x - 1,
	'str': lambda *args: ''.join(map(_text, args)),
	'list': lambda *args: list(args),
	'vector': lambda *args: list(args),
	'hash-map': lambda *args: dict(zip(args[0::2], args[1::2])),
	'get': _get,
	'count': lambda x: 0 if x is None else len(x),
	'first': lambda x: None if not x else list(x)[0],
	'rest': lambda x: [] if not x else list(x)[1:],
	'nth': lambda x, i: list(x)[i],
	'cons': lambda x, seq: [x] + list(seq or ()),
	'conj': _conj,
	'apply': _apply,
	'identity': lambda x: x,
	'map': lambda f, seq: list(map(f, seq)),
	'filter': lambda f, seq: [x for x in seq if truthy(f(x))],
	'reduce': lambda f, init, seq: functools.reduce(f, seq, init),
	'range': lambda *args: list(range(*args)),
	'nil?': lambda x: x is None,
	'zero?': lambda x: x == 0,
	'pos?': lambda x: x > 0,
	'neg?': lambda x: x < 0,
	'even?': lambda x: x % 2 == 0,
	'odd?': lambda x: x % 2 == 1,
	'instance?': lambda cls, x: isinstance(x, cls),
	'keyword': syntax.Keyword,
	'symbol': syntax.Symbol,
	'println': lambda *args: print(' '.join(map(_text, args))),
}

def resolve(symbol, namespace, scope=None):
	"""
	# Find the value bound to &symbol.
	"""
	name = symbol.name

	if scope is not None:
		s = scope.find(name)
		if s is not None:
			return s.bindings[name]

	if name in namespace.bindings:
		return namespace.bindings[name]
	if name in core:
		return core[name]

	if '.' in name.strip('.'):
		first, *path = name.split('.')
		obj = resolve(syntax.Symbol(first), namespace, scope)
		try:
			for attribute in path:
				obj = getattr(obj, attribute)
		except AttributeError:
			raise InterpretationError("unable to resolve symbol %s in namespace %s" %(name, namespace.name))
		return obj

	if hasattr(builtins, name):
		return getattr(builtins, name)

	raise InterpretationError("unable to resolve symbol %s in namespace %s" %(name, namespace.name))

def evaluate_body(forms, namespace, scope=None):
	result = None
	for form in forms:
		result = evaluate(form, namespace, scope)
	return result

def evaluate(form, namespace, scope=None):
	"""
	# Evaluate &form in &namespace with the lexical bindings in &scope.
	"""
	if isinstance(form, syntax.Symbol):
		return resolve(form, namespace, scope)
	elif isinstance(form, syntax.List):
		if not len(form):
			return form

		name = syntax.head(form)
		if name in special_forms:
			return special_forms[name](form, namespace, scope)

		expanded = expansion.expand1(form)
		if expanded is not form:
			return evaluate(expanded, namespace, scope)

		f = evaluate(form[0], namespace, scope)
		arguments = [evaluate(x, namespace, scope) for x in form.items[1:]]
		if not callable(f):
			raise InterpretationError("%s is not callable" %(_text(f) if f is not None else 'nil',))
		return f(*arguments)
	elif isinstance(form, syntax.Vector):
		return [evaluate(x, namespace, scope) for x in form]
	elif isinstance(form, syntax.Map):
		return {
			evaluate(k, namespace, scope): evaluate(v, namespace, scope)
			for k, v in form.pairs
		}
	else:
		# Self-evaluating.
		return form

def _arity(form, minimum, maximum=None):
	count = len(form) - 1
	if count < minimum or (maximum is not None and count > maximum):
		raise InterpretationError("malformed %s form: %s" %(form[0].name, syntax.represent(form)))

def special_quote(form, namespace, scope):
	_arity(form, 1, 1)
	return form[1]

def special_if(form, namespace, scope):
	_arity(form, 2, 3)
	if truthy(evaluate(form[1], namespace, scope)):
		return evaluate(form[2], namespace, scope)
	elif len(form) == 4:
		return evaluate(form[3], namespace, scope)
	return None

def special_do(form, namespace, scope):
	return evaluate_body(form.items[1:], namespace, scope)

def _bind(form, namespace, scope):
	_arity(form, 1)
	bindings = form[1]
	if not isinstance(bindings, syntax.Vector) or len(bindings) % 2:
		raise InterpretationError("%s requires an even number of forms in a binding vector" %(form[0].name,))

	local = Scope({}, scope)
	names = []
	for name, value in zip(bindings.items[0::2], bindings.items[1::2]):
		if not isinstance(name, syntax.Symbol):
			raise InterpretationError("unsupported binding form: %s" %(syntax.represent(name),))
		local.bindings[name.name] = evaluate(value, namespace, local)
		names.append(name.name)
	return names, local

def special_let(form, namespace, scope):
	names, local = _bind(form, namespace, scope)
	return evaluate_body(form.items[2:], namespace, local)

def special_loop(form, namespace, scope):
	names, local = _bind(form, namespace, scope)
	body = form.items[2:]
	while True:
		try:
			return evaluate_body(body, namespace, local)
		except Recur as r:
			if len(r.arguments) != len(names):
				raise InterpretationError(
					"mismatched argument count to recur, expected %d args, got %d" %(
						len(names), len(r.arguments)
					)
				)
			local = Scope(dict(zip(names, r.arguments)), scope)

def special_recur(form, namespace, scope):
	raise Recur([evaluate(x, namespace, scope) for x in form.items[1:]])

def special_def(form, namespace, scope):
	_arity(form, 1, 3)
	name = form[1]
	if not isinstance(name, syntax.Symbol):
		raise InterpretationError("first argument to def must be a symbol")

	if len(form) == 2:
		namespace.bindings.setdefault(name.name, None)
		return Var(namespace, name.name)

	# The var exists during the evaluation of the initializer.
	var = namespace.define(name.name, namespace.bindings.get(name.name))
	namespace.define(name.name, evaluate(form[-1], namespace, scope))
	return var

def _overload(parameters, body):
	names = [x.name for x in parameters]
	rest = None
	if '&' in names:
		i = names.index('&')
		rest = names[i+1]
		names = names[:i]
	return (names, rest, tuple(body))

def special_fn(form, namespace, scope):
	_arity(form, 1)
	rest = list(form.items[1:])
	name = None
	if isinstance(rest[0], syntax.Symbol):
		name = rest.pop(0).name

	if not rest:
		raise InterpretationError("fn requires at least one overload")

	if isinstance(rest[0], syntax.Vector):
		overloads = [_overload(rest[0], rest[1:])]
	else:
		overloads = []
		for group in rest:
			if not isinstance(group, syntax.List) or not len(group) or not isinstance(group[0], syntax.Vector):
				raise InterpretationError("malformed fn overload: %s" %(syntax.represent(group),))
			overloads.append(_overload(group[0], group.items[1:]))

	return Function(name, overloads, namespace, scope)

def special_new(form, namespace, scope):
	_arity(form, 1)
	cls = evaluate(form[1], namespace, scope)
	return cls(*[evaluate(x, namespace, scope) for x in form.items[2:]])

def special_member(form, namespace, scope):
	_arity(form, 2)
	target = evaluate(form[1], namespace, scope)
	selector = form[2]
	if isinstance(selector, syntax.List):
		member, arguments = selector[0], selector.items[1:]
	else:
		member, arguments = selector, form.items[3:]

	name = member.name
	if name.startswith('-'):
		return getattr(target, name[1:])

	attribute = getattr(target, name)
	if callable(attribute):
		return attribute(*[evaluate(x, namespace, scope) for x in arguments])
	elif arguments:
		raise InterpretationError("%s is not callable" %(name,))
	return attribute

def special_try(form, namespace, scope):
	body = []
	catches = []
	final = None
	for x in form.items[1:]:
		h = syntax.head(x)
		if h == 'catch':
			catches.append(x)
		elif h == 'finally':
			final = x
		else:
			body.append(x)

	try:
		return evaluate_body(body, namespace, scope)
	except Recur:
		raise
	except Exception as error:
		for clause in catches:
			cls = evaluate(clause[1], namespace, scope)
			if isinstance(error, cls):
				local = Scope({clause[2].name: error}, scope)
				return evaluate_body(clause.items[3:], namespace, local)
		raise
	finally:
		if final is not None:
			evaluate_body(final.items[1:], namespace, scope)

def special_throw(form, namespace, scope):
	_arity(form, 1, 1)
	error = evaluate(form[1], namespace, scope)
	if not isinstance(error, BaseException):
		raise InterpretationError("cannot throw %s" %(_text(error),))
	raise error

def special_var(form, namespace, scope):
	_arity(form, 1, 1)
	name = form[1].name
	if name not in namespace.bindings:
		raise InterpretationError("unable to resolve var %s in namespace %s" %(name, namespace.name))
	return Var(namespace, name)

def special_set(form, namespace, scope):
	_arity(form, 2, 2)
	target = form[1]
	value = evaluate(form[2], namespace, scope)

	if isinstance(target, syntax.List) and syntax.head(target) == '.':
		obj = evaluate(target[1], namespace, scope)
		setattr(obj, target[2].name.lstrip('-'), value)
		return value

	s = scope.find(target.name) if scope is not None else None
	if s is not None:
		s.bindings[target.name] = value
	elif target.name in namespace.bindings:
		namespace.bindings[target.name] = value
	else:
		raise InterpretationError("cannot set! unbound symbol %s" %(target.name,))
	return value

def special_import(form, namespace, scope):
	_arity(form, 1)
	for x in form.items[1:]:
		name = x if isinstance(x, str) else x.name
		importlib.import_module(name)
		top = name.split('.')[0]
		namespace.bindings[top] = importlib.import_module(top)
		logger.debug("imported %s into %s", name, namespace.name)
	return None

special_forms = {
	'quote': special_quote,
	'if': special_if,
	'do': special_do,
	'let*': special_let,
	'loop*': special_loop,
	'recur': special_recur,
	'def': special_def,
	'fn': special_fn,
	'fn*': special_fn,
	'new': special_new,
	'.': special_member,
	'try': special_try,
	'throw': special_throw,
	'var': special_var,
	'set!': special_set,
	'import*': special_import,
}
