"""
# Source text processing: read s-expression text into forms.

# Containers are annotated with the line of their opening delimiter using
# &.metadata.table. Forms are produced lazily, one top-level form at a time,
# so that a failure in a later form is only reported once the preceding forms
# have been consumed.
"""
import re
import logging

from . import syntax
from . import metadata
from .errors import ReadError

logger = logging.getLogger(__name__)

token_pattern = re.compile(r'''
	(?P<space>[\s,]+)
	|(?P<comment>;[^\n]*)
	|(?P<string>"(?:\\.|[^"\\])*")
	|(?P<unterminated>")
	|(?P<open>[(\[{])
	|(?P<close>[)\]}])
	|(?P<quote>')
	|(?P<atom>[^\s,;()\[\]{}"']+)
''', re.VERBOSE)

integer_pattern = re.compile(r'^[-+]?\d+$')
float_pattern = re.compile(r'^[-+]?(\d+\.\d*|\.\d+|\d+)([eE][-+]?\d+)?$')

closings = {
	'(': ')',
	'[': ']',
	'{': '}',
}

constructors = {
	'(': syntax.List,
	'[': syntax.Vector,
}

string_escapes = {
	'n': '\n',
	't': '\t',
	'r': '\r',
	'"': '"',
	'\\': '\\',
	'0': '\0',
}

def tokenize(text:str, path='<string>'):
	"""
	# Generate `(kind, string, line)` triples for the significant tokens in &text.
	"""
	line = 1
	position = 0
	end = len(text)
	while position < end:
		m = token_pattern.match(text, position)
		kind = m.lastgroup
		string = m.group(kind)

		if kind == 'unterminated':
			raise ReadError(path, line, "unterminated string")
		elif kind not in {'space', 'comment'}:
			yield kind, string, line

		line += string.count('\n')
		position = m.end()

def unescape(literal, path, line):
	chars = []
	i = 1
	stop = len(literal) - 1
	while i < stop:
		c = literal[i]
		if c == '\\':
			i += 1
			try:
				chars.append(string_escapes[literal[i]])
			except KeyError:
				raise ReadError(path, line, "unsupported escape \\%s" %(literal[i],))
		else:
			chars.append(c)
		i += 1
	return ''.join(chars)

def atom(string:str):
	"""
	# Interpret the text of an atom token.
	"""
	if string == 'nil':
		return None
	elif string == 'true':
		return True
	elif string == 'false':
		return False
	elif integer_pattern.match(string):
		return int(string)
	elif float_pattern.match(string):
		return float(string)
	elif string[:1] == ':' and len(string) > 1:
		return syntax.Keyword(string[1:])
	else:
		return syntax.Symbol(string)

class Reader(object):
	"""
	# Recursive descent over the token stream of a single source.
	"""

	def __init__(self, text:str, path='<string>', table=metadata.table):
		self.path = path
		self.table = table
		self._tokens = tokenize(text, path)

	def _next(self):
		return next(self._tokens, None)

	def _form(self, token):
		kind, string, line = token

		if kind == 'atom':
			return atom(string)
		elif kind == 'string':
			return unescape(string, self.path, line)
		elif kind == 'quote':
			t = self._next()
			if t is None:
				raise ReadError(self.path, line, "quote without a form")
			quoted = syntax.List((syntax.Symbol('quote'), self._form(t)))
			return metadata.annotate(quoted, table=self.table, line=line)
		elif kind == 'open':
			elements = self._until(closings[string], line)
			if string == '{':
				if len(elements) % 2:
					raise ReadError(self.path, line, "map literal must contain an even number of forms")
				form = syntax.Map(zip(elements[0::2], elements[1::2]))
			else:
				form = constructors[string](elements)
			return metadata.annotate(form, table=self.table, line=line)
		else:
			raise ReadError(self.path, line, "unexpected %r" %(string,))

	def _until(self, closing, line):
		elements = []
		while True:
			t = self._next()
			if t is None:
				raise ReadError(self.path, line, "unbalanced %r; end of source reached" %(closing,))
			if t[0] == 'close':
				if t[1] != closing:
					raise ReadError(self.path, t[2], "expected %r, found %r" %(closing, t[1]))
				return elements
			elements.append(self._form(t))

	def read(self, eof=None):
		"""
		# Read the next top-level form, or return &eof when the source is exhausted.
		"""
		t = self._next()
		if t is None:
			return eof
		return self._form(t)

	def __iter__(self):
		eof = object()
		while True:
			form = self.read(eof)
			if form is eof:
				break
			logger.debug("read %r from %s at line %r", form, self.path, metadata.line(form, table=self.table))
			yield form

def parse(text:str, path='<string>', table=metadata.table):
	"""
	# Iterate the top-level forms of &text.
	"""
	return iter(Reader(text, path, table=table))

def read(text:str, path='<string>', table=metadata.table):
	"""
	# Read exactly one form from &text.
	"""
	forms = list(parse(text, path, table=table))
	if len(forms) != 1:
		raise ReadError(path, 1, "expected a single form, found %d" %(len(forms),))
	return forms[0]

if __name__ == '__main__':
	import sys
	src, = sys.argv[1:]
	with open(src) as f:
		for form in parse(f.read(), src):
			print('%s\t%s' %(metadata.line(form), syntax.represent(form)))
