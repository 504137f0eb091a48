"""
# Coverage data collection for instrumented forms.

# A &Collector acts as both sides of the probe contract: at rewrite time,
# &Collector.probe registers the form being instrumented and returns the probe call;
# at evaluation time, the installed counter, &Collector.cover, notes the execution
# and passes the value through.

# Common usage:

#!/pl/python
	collector = trace.Collector()
	forms = module.instrument(collector, 'project.core')
	counts = collector.lines()

# [ Properties ]

# /Record
	# The `(module, line, form)` triple registered for each probe call.
"""
import collections
import functools
import logging
import typing

from . import syntax
from . import metadata

logger = logging.getLogger(__name__)

Record = typing.Tuple[typing.Optional[str], typing.Optional[int], object]

class Collector(object):
	"""
	# Registry of instrumented forms and their execution counts.

	# [ Parameters ]
	# /endpoint/
		# Callable receiving a `(module, line, index)` triple for every execution.
		# Defaults to appending to &events.
	"""

	symbol = '__cover__'

	def __init__(self, endpoint=None):
		self.records = []
		self.counts = collections.Counter()
		self.events = []
		self.endpoint = endpoint if endpoint is not None else self.events.append

	def register(self, module:str, line, form) -> syntax.List:
		"""
		# Note &form as instrumented and construct the probe call that counts it.
		"""
		index = len(self.records)
		self.records.append((module, line, form))
		return syntax.List((syntax.Symbol(self.symbol), index, form))

	def probe(self, module:str):
		"""
		# The probe for forms of &module: a callable taking a line and a form.
		"""
		return functools.partial(self.register, module)

	def cover(self, index, value):
		"""
		# Count the execution of the form registered at &index and return &value.
		"""
		module, line, form = self.records[index]
		self.counts[index] += 1
		self.endpoint((module, line, index))
		return value

	def install(self, namespace):
		"""
		# Bind the counter in &namespace so that probe calls can be evaluated.
		"""
		namespace.bindings[self.symbol] = self.cover
		return namespace

	def original(self, index):
		"""
		# The pre-rewrite form of the record at &index.
		"""
		return metadata.original(self.records[index][2])

	def hits(self, predicate=None) -> typing.Sequence[Record]:
		"""
		# The records that have been executed at least once.
		"""
		return [
			r for i, r in enumerate(self.records)
			if self.counts[i] and (predicate is None or predicate(r))
		]

	def lines(self) -> typing.Mapping[typing.Tuple[str, int], int]:
		"""
		# Execution counts keyed by `(module, line)`.

		# Lines holding instrumented forms that never executed are present with a zero
		# count. Records without a line are excluded.
		"""
		data = collections.OrderedDict()
		for i, (module, line, form) in enumerate(self.records):
			if line is None:
				continue
			key = (module, line)
			data[key] = data.get(key, 0) + self.counts[i]
		return data
