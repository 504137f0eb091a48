import os

import pytest

from .. import syntax
from .. import evaluation
from .. import trace
from .. import module
from ..errors import InputError, ReadError, WrapError, EvaluationError, InstrumentationError

S = syntax.Symbol

sample = """
(defn square [x]
  (* x x))
(def result (square 4))
(when (> result 100)
  (inc result))
""".lstrip()

def project(root, text=sample, name='core'):
	d = root / 'proj'
	d.mkdir(exist_ok=True)
	f = d / (name + '.lisp')
	f.write_text(text)
	return f

def test_identifier():
	assert module.identifier('proj.core') == 'proj.core'
	assert module.identifier(S('my-proj.core')) == 'my-proj.core'

	for invalid in ['1abc', 'a..b', '', 'a b', 3, None]:
		with pytest.raises(InputError):
			module.identifier(invalid)

def test_resource_path():
	assert module.resource_path('my-proj.core') == os.path.join('my_proj', 'core.lisp')
	assert module.resource_path(S('single')) == 'single.lisp'

def test_search_path():
	assert module.search_path({'FORMCOVER_PATH': 'a' + os.pathsep + 'b'}) == ['a', 'b']
	assert module.search_path({}) == [os.getcwd()]

def test_locate(tmp_path):
	f = project(tmp_path)
	assert module.locate('proj.core', path=[tmp_path / 'nothing', tmp_path]) == str(f)

	with pytest.raises(InputError) as exc:
		module.locate('proj.missing', path=[tmp_path])
	assert exc.value.identifier == 'proj.missing'
	assert isinstance(exc.value, ValueError)

def test_instrument(tmp_path):
	"""
	# Forms are evaluated in order and their executions are counted per line.
	"""
	project(tmp_path)
	collector = trace.Collector()
	ns = evaluation.Namespace('proj.core')

	forms = module.instrument(collector, 'proj.core', path=[tmp_path], namespace=ns)
	assert len(forms) == 3
	assert ns.bindings['result'] == 16
	assert ns.bindings['__cover__'] == collector.cover

	lines = collector.lines()
	assert lines[('proj.core', 1)] > 0
	assert lines[('proj.core', 2)] > 0
	assert lines[('proj.core', 3)] > 0
	assert lines[('proj.core', 4)] > 0
	# The body of the `when` is never reached.
	assert lines[('proj.core', 5)] == 0

def test_instrument_environment(tmp_path, monkeypatch):
	project(tmp_path)
	monkeypatch.setenv('FORMCOVER_PATH', str(tmp_path))
	forms = module.instrument(trace.Collector(), S('proj.core'))
	assert len(forms) == 3

def test_instrument_dump(tmp_path):
	project(tmp_path)
	out = tmp_path / 'out'
	module.instrument(trace.Collector(), 'proj.core', path=[tmp_path], dump=out)

	text = (out / 'proj.core.lisp').read_text()
	assert len(text.splitlines()) == 3
	assert '__cover__' in text

def test_instrument_missing(tmp_path):
	with pytest.raises(InputError):
		module.instrument(trace.Collector(), 'proj.missing', path=[tmp_path])

def test_instrument_read_error(tmp_path):
	project(tmp_path, '(def x 1)\n(def y')
	ns = evaluation.Namespace('proj.core')
	with pytest.raises(ReadError) as exc:
		module.instrument(trace.Collector(), 'proj.core', path=[tmp_path], namespace=ns)
	assert exc.value.line == 2
	assert isinstance(exc.value, InstrumentationError)
	# Forms before the failure were evaluated.
	assert ns.bindings['x'] == 1

def test_instrument_wrap_error(tmp_path):
	project(tmp_path, '(def x 1)\n(let* [a] a)')
	with pytest.raises(WrapError) as exc:
		module.instrument(trace.Collector(), 'proj.core', path=[tmp_path])

	assert exc.value.form == syntax.Vector([S('a')])
	assert syntax.represent(exc.value.context) == '(let* [a] a)'
	assert exc.value.line == 2
	assert 'at line 2' in str(exc.value)

def test_instrument_evaluation_error(tmp_path):
	project(tmp_path, '(def x 1)\n(def y (undefined-function x))')
	with pytest.raises(EvaluationError) as exc:
		module.instrument(trace.Collector(), 'proj.core', path=[tmp_path])

	err = exc.value
	assert err.original == '(def y (undefined-function x))'
	assert '__cover__' in err.rewritten
	assert err.line == 2
	assert isinstance(err.__cause__, evaluation.InterpretationError)

def test_instrumenting(tmp_path):
	"""
	# The module being instrumented is noted for the duration of the instrumentation.
	"""
	project(tmp_path, '(spy)')
	seen = []
	ns = evaluation.Namespace('proj.core')
	ns.bindings['spy'] = lambda: seen.append(module.instrumenting)

	module.instrument(trace.Collector(), 'proj.core', path=[tmp_path], namespace=ns)
	assert seen == ['proj.core']
	assert module.instrumenting is None

	project(tmp_path, '(undefined)')
	with pytest.raises(EvaluationError):
		module.instrument(trace.Collector(), 'proj.core', path=[tmp_path])
	assert module.instrumenting is None

def test_instrument_undecodable(tmp_path):
	"""
	# Source that is not valid in the encoding is reported as a read failure.
	"""
	f = project(tmp_path)
	f.write_bytes(b'(def x 1)\n(def y "\xff\xfe")\n')
	with pytest.raises(ReadError) as exc:
		module.instrument(trace.Collector(), 'proj.core', path=[tmp_path])

	assert exc.value.path == str(f)
	assert exc.value.line == 2
	assert isinstance(exc.value.__cause__, UnicodeDecodeError)
	assert module.instrumenting is None

def test_decode(tmp_path):
	f = tmp_path / 'crlf.lisp'
	f.write_bytes(b'(def x 1)\r\n(def y 2)\r\n')
	assert module.decode(str(f)) == '(def x 1)\n(def y 2)\n'
