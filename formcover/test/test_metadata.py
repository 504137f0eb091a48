import gc

import pytest

from .. import syntax
from .. import metadata as module

S = syntax.Symbol
L = syntax.List
V = syntax.Vector

def test_capable():
	assert module.capable(L())
	assert module.capable(V())
	assert module.capable(syntax.Map())
	assert not module.capable(S('a'))
	assert not module.capable(1)
	assert not module.capable(None)

def test_Table_assign():
	t = module.Table()
	form = L([S('a')])
	t.assign(form, {'line': 3})
	assert t.get(form, 'line') == 3
	assert t.record(form) == {'line': 3}

	# Records are copies.
	t.record(form)['line'] = 10
	assert t.get(form, 'line') == 3

	with pytest.raises(TypeError):
		t.assign(S('a'), {'line': 1})

def test_Table_discard():
	"""
	# Records are dropped along with their form.
	"""
	t = module.Table()
	form = L([1])
	t.assign(form, {'line': 1})
	assert len(t) == 1
	del form
	gc.collect()
	assert len(t) == 0

def test_line_of_atoms():
	assert module.line(S('x')) is None
	assert module.line(1) is None
	assert module.original(S('x')) == S('x')

def test_annotate_omits_none():
	form = module.annotate(L(), line=None, other=2)
	assert module.record(form) == {'other': 2}

def test_propagate_line_inherits():
	"""
	# Sub-forms without a line receive the nearest enclosing one.
	"""
	inner = L([S('f'), 1])
	form = L([S('g'), inner, V([L([S('h')])])])
	result = module.propagate_line(7, form)

	assert result == form
	assert result is not form
	assert module.line(result) == 7
	assert module.line(result[1]) == 7
	assert module.line(result[2]) == 7
	assert module.line(result[2][0]) == 7

	# The input is left alone.
	assert module.line(form) is None
	assert module.line(inner) is None

def test_propagate_line_own_line_wins():
	own = module.annotate(L([S('f'), L([S('x')])]), line=2)
	form = module.annotate(L([S('g'), own]), line=1)
	result = module.propagate_line(9, form)

	assert module.line(result) == 1
	assert module.line(result[1]) == 2
	assert module.line(result[1][1]) == 2

def test_propagate_line_shares_complete_forms():
	leaf = module.annotate(V([1, 2]), line=4)
	form = module.annotate(L([S('f'), leaf]), line=4)
	assert module.propagate_line(4, form) is form
	assert module.propagate_line(None, L([1])).__class__ is L

def test_propagate_line_without_hint():
	form = L([S('f'), L([1])])
	assert module.propagate_line(None, form) is form

def test_propagate_line_map():
	m = syntax.Map([(L([S('k')]), V([1]))])
	result = module.propagate_line(3, m)
	k, v = result.pairs[0]
	assert module.line(k) == 3
	assert module.line(v) == 3

def test_merge_provenance():
	original = module.annotate(L([S('when'), S('a'), 1]), line=12, note='kept')
	rewritten = module.annotate(L([S('if'), S('a'), 1]), line=99, note='replaced', extra=True)

	result = module.merge_provenance(original, rewritten)
	r = module.record(result)
	assert result == rewritten
	assert r['line'] == 99
	assert r['note'] == 'kept'
	assert r['extra'] is True
	assert r['original'] is original

	# The rewritten form's own record is not altered.
	assert 'original' not in module.record(rewritten)

def test_merge_provenance_hint():
	original = L([S('f')])
	result = module.merge_provenance(original, L([S('g'), L([1])]), hint=5)
	assert module.line(result) == 5
	assert module.line(result[1]) == 5
	assert module.original(result) is original

def test_merge_provenance_drops_unknown_line():
	original = L([S('f')])
	result = module.merge_provenance(original, L([S('g')]))
	assert 'line' not in module.record(result)
	assert module.original(result) is original

def test_merge_provenance_atom():
	assert module.merge_provenance(L([S('comment')]), None, hint=1) is None
