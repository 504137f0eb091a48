"""
# Out-of-band metadata for forms.

# Records are kept in a &Table keyed by node identity rather than stored on the nodes.
# Forms are immutable, so recomputing line information for a rewritten tree copies
# the containers that need a new record and shares the ones that are already complete.

# [ Records ]

# /`line`/
	# The source line the form was read from or inherited.
# /`original`/
	# The pre-rewrite form that a replacement was produced from.
"""
import weakref
import logging

from . import syntax

logger = logging.getLogger(__name__)

Capable = (syntax.Sequence, syntax.Map)

def capable(form) -> bool:
	"""
	# Whether &form can carry metadata.
	"""
	return isinstance(form, Capable)

class Table(object):
	"""
	# Identity keyed mapping of forms to metadata records.
	# Entries are discarded when their form is collected.
	"""

	def __init__(self):
		self._records = {}

	def __len__(self):
		return len(self._records)

	def _discard(self, key):
		self._records.pop(key, None)

	def record(self, form) -> dict:
		"""
		# A copy of the record associated with &form; empty when there is none.
		"""
		return dict(self._records.get(id(form), ()))

	def get(self, form, field, default=None):
		r = self._records.get(id(form))
		if r is None:
			return default
		return r.get(field, default)

	def assign(self, form, record):
		"""
		# Replace the record of &form with &record.
		"""
		if not capable(form):
			raise TypeError("metadata cannot be assigned to %r" %(form.__class__.__name__,))

		key = id(form)
		if key not in self._records:
			weakref.finalize(form, self._discard, key)
		self._records[key] = dict(record)
		return form

# Table shared by the reader, the wrapper, and the collector.
table = Table()

def line(form, table=table):
	"""
	# The line recorded for &form, or &None.
	"""
	if not capable(form):
		return None
	return table.get(form, 'line')

def original(form, table=table):
	"""
	# The pre-rewrite form that &form was produced from, or &form itself.
	"""
	if not capable(form):
		return form
	return table.get(form, 'original', form)

def record(form, table=table):
	if not capable(form):
		return {}
	return table.record(form)

def annotate(form, table=table, **fields):
	"""
	# Assign &fields to the record of a newly constructed &form.
	# Fields with a &None value are omitted.
	"""
	r = table.record(form)
	r.update((k, v) for k, v in fields.items() if v is not None)
	return table.assign(form, r)

def propagate_line(hint, form, table=table):
	"""
	# Attach the most specific known line to &form and every capable sub-form.

	# A form's own line takes precedence over &hint, and becomes the hint
	# for its sub-forms. Containers already carrying the line and whose
	# sub-forms are unchanged are returned as-is; others are copied with
	# their existing record extended.
	"""
	if not capable(form):
		return form

	current = table.get(form, 'line')
	ln = current if current is not None else hint

	if isinstance(form, syntax.Map):
		pairs = [
			(propagate_line(ln, k, table=table), propagate_line(ln, v, table=table))
			for k, v in form.pairs
		]
		changed = any(
			nk is not k or nv is not v
			for (nk, nv), (k, v) in zip(pairs, form.pairs)
		)
		elements = pairs
	else:
		elements = [propagate_line(ln, x, table=table) for x in form]
		changed = any(n is not o for n, o in zip(elements, form))

	if not changed and (current is not None or ln is None):
		return form

	r = table.record(form)
	new = syntax.rebuild(form, elements)
	if ln is not None:
		r['line'] = ln
	return table.assign(new, r)

def merge_provenance(original, rewritten, hint=None, table=table):
	"""
	# Produce the final form of a replacement.

	# The line is recomputed from &original's line, or &hint, over &rewritten;
	# &original's other metadata is layered over &rewritten's; the line is dropped
	# when unknown; and &original itself is attached as the `original` field.
	"""
	if not capable(rewritten):
		return rewritten

	ln = line(original, table=table)
	if ln is None:
		ln = hint

	updated = propagate_line(ln, rewritten, table=table)
	r = table.record(updated)
	recomputed = r.get('line')

	r.update(record(original, table=table))
	r.pop('line', None)
	if recomputed is not None:
		r['line'] = recomputed
	r['original'] = original

	if updated is rewritten:
		# Never alter the record of a node the caller still holds.
		updated = syntax.rebuild(rewritten)

	logger.debug("provenance of %r: line %r", updated, recomputed)
	return table.assign(updated, r)
