"""
# Form model for s-expression programs.

# Atoms are plain Python values (&str, &int, &float, &bool, &None) along with the
# &Symbol and &Keyword types. Compound structure is represented with &List, &Vector,
# and &Map; all three are immutable and weakly referenceable so that &.metadata can
# keep out-of-band records about them.
"""
import collections

class Symbol(object):
	"""
	# A name. Equality is by name, so two symbols read from different locations
	# compare equal while remaining distinct objects.
	"""
	__slots__ = ('name',)

	def __init__(self, name:str):
		self.name = name

	def __eq__(self, other):
		return other.__class__ is Symbol and other.name == self.name

	def __ne__(self, other):
		return not self.__eq__(other)

	def __hash__(self):
		return hash((Symbol, self.name))

	def __repr__(self):
		return 'Symbol(%r)' %(self.name,)

class Keyword(object):
	"""
	# Self-evaluating name; read from `:name`.
	"""
	__slots__ = ('name',)

	def __init__(self, name:str):
		self.name = name

	def __eq__(self, other):
		return other.__class__ is Keyword and other.name == self.name

	def __ne__(self, other):
		return not self.__eq__(other)

	def __hash__(self):
		return hash((Keyword, self.name))

	def __repr__(self):
		return 'Keyword(%r)' %(self.name,)

class Sequence(object):
	"""
	# Ordered, immutable container of forms.
	"""
	__slots__ = ('items', '__weakref__')
	delimiters = ('', '')

	def __init__(self, items=()):
		self.items = tuple(items)

	def __iter__(self):
		return iter(self.items)

	def __len__(self):
		return len(self.items)

	def __bool__(self):
		return True

	def __getitem__(self, index):
		return self.items[index]

	def __eq__(self, other):
		return other.__class__ is self.__class__ and other.items == self.items

	def __ne__(self, other):
		return not self.__eq__(other)

	def __hash__(self):
		return hash((self.__class__, self.items))

	def __repr__(self):
		return '%s(%r)' %(self.__class__.__name__, list(self.items))

class List(Sequence):
	"""
	# Parenthesized form; evaluated as a call or special form.
	"""
	__slots__ = ()
	delimiters = ('(', ')')

class Vector(Sequence):
	"""
	# Bracketed form; parameter lists, binding lists, and literal vectors.
	"""
	__slots__ = ()
	delimiters = ('[', ']')

class Map(object):
	"""
	# Braced form holding key-value pairs in read order.
	# Keys are forms and need not be hashable.
	"""
	__slots__ = ('pairs', '__weakref__')
	delimiters = ('{', '}')

	def __init__(self, pairs=()):
		self.pairs = tuple((k, v) for k, v in pairs)

	def keys(self):
		return [k for k, v in self.pairs]

	def values(self):
		return [v for k, v in self.pairs]

	def items(self):
		return list(self.pairs)

	def __iter__(self):
		return iter(self.keys())

	def __len__(self):
		return len(self.pairs)

	def __bool__(self):
		return True

	def __eq__(self, other):
		return other.__class__ is Map and other.pairs == self.pairs

	def __ne__(self, other):
		return not self.__eq__(other)

	def __hash__(self):
		return hash((Map, self.pairs))

	def __repr__(self):
		return 'Map(%r)' %(list(self.pairs),)

def head(form):
	"""
	# The leading symbol's name of a &List, or &None.
	"""
	if isinstance(form, List) and len(form) and isinstance(form[0], Symbol):
		return form[0].name
	return None

def rebuild(form, elements=None):
	"""
	# Construct a new instance of &form's container type holding &elements.
	# &Map instances expect pairs. Without &elements, a shallow copy is made.
	"""
	if elements is None:
		elements = form.pairs if isinstance(form, Map) else form.items
	return form.__class__(elements)

def children(form):
	"""
	# The immediate sub-forms of a container; empty for atoms.
	"""
	if isinstance(form, Sequence):
		return form.items
	elif isinstance(form, Map):
		return tuple(x for pair in form.pairs for x in pair)
	return ()

def walk(form, Queue=collections.deque):
	"""
	# Breadth first iteration over &form and all of its sub-forms.
	"""
	d = Queue((form,))
	pop = d.popleft
	extend = d.extend
	while d:
		f = pop()
		extend(children(f))
		yield f

escapes = {
	'"': '\\"',
	'\\': '\\\\',
	'\n': '\\n',
	'\t': '\\t',
	'\r': '\\r',
}

def represent(form) -> str:
	"""
	# Render &form as readable text.
	# &.source.parse of the result produces a structurally identical form.
	"""
	if form is None:
		return 'nil'
	elif form is True:
		return 'true'
	elif form is False:
		return 'false'
	elif isinstance(form, Symbol):
		return form.name
	elif isinstance(form, Keyword):
		return ':' + form.name
	elif isinstance(form, str):
		return '"' + ''.join(escapes.get(c, c) for c in form) + '"'
	elif isinstance(form, (int, float)):
		return repr(form)
	elif isinstance(form, Sequence):
		opening, closing = form.delimiters
		return opening + ' '.join(map(represent, form)) + closing
	elif isinstance(form, Map):
		return '{' + ', '.join(represent(k) + ' ' + represent(v) for k, v in form.pairs) + '}'
	else:
		# Foreign object; not readable.
		return '#<%r>' %(form,)
