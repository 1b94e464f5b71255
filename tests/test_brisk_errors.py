"""
Tests for Brisk diagnostics and the error hierarchy.
"""

import pytest

from brisk import (
    tokenize, Interpreter, SourceLocation, SourceSpan, Diagnostic, ErrorSeverity,
    BriskError, BriskSyntaxError, LexerError, ParserError, EvalError,
    BriskReferenceError, BriskTypeError, ArityError, ControlFlowError,
    RedeclarationError,
)
from brisk import errors


def span(line=1, start=1, end=2):
    return SourceSpan(SourceLocation(line, start, 0), SourceLocation(line, end, 0))


class TestDiagnostic:
    """Test diagnostic formatting."""

    def test_format_without_span(self):
        diag = Diagnostic(code="E401", message="'x' is not defined")
        assert diag.format("ReferenceError") == "ReferenceError[E401]: 'x' is not defined"

    def test_format_with_source(self):
        diag = Diagnostic(
            code="E402",
            message="type 'string' is not assignable to type 'int'",
            span=span(1, 9, 12),
            source_line='int a = "x"',
        )
        lines = diag.format("TypeError").splitlines()
        assert lines[0] == "1:9: TypeError[E402]: type 'string' is not assignable to type 'int'"
        assert lines[2] == '  1 | int a = "x"'
        assert lines[3] == "    |         ^^^"

    def test_format_without_source(self):
        diag = Diagnostic(code="E410", message="division by zero", span=span())
        formatted = diag.format("RuntimeError", show_source=False)
        assert "|" not in formatted

    def test_hints(self):
        err = errors.error_unknown_type("number")
        assert "= hint:" in str(err)

    def test_to_json(self):
        diag = Diagnostic(code="E001", message="unexpected character '@'", span=span(2, 3, 4))
        data = diag.to_json()
        assert data["code"] == "E001"
        assert data["severity"] == "error"
        assert data["range"]["start"] == {"line": 2, "column": 3, "offset": 0}

    def test_to_json_without_span(self):
        data = Diagnostic(code="E407", message="m").to_json()
        assert data["range"] is None
        assert data["severity"] == ErrorSeverity.ERROR.value

    def test_every_diagnostic_is_an_error(self):
        assert [s.value for s in ErrorSeverity] == ["error"]


class TestBriskError:
    """Test exception behavior."""

    def test_with_span_fills_missing(self):
        err = errors.error_division_by_zero()
        assert err.span is None
        assert err.with_span(span(3)) is err
        assert err.span.start.line == 3

    def test_with_span_keeps_existing(self):
        err = errors.error_division_by_zero(span(1))
        err.with_span(span(5))
        assert err.span.start.line == 1

    def test_attach_source(self):
        err = errors.error_undefined_identifier("b", span(2, 1, 2))
        err.attach_source("int a = 1\nb")
        assert err.diagnostic.source_line == "b"

    def test_attach_source_out_of_range(self):
        err = errors.error_undefined_identifier("b", span(9))
        err.attach_source("b")
        assert err.diagnostic.source_line is None

    def test_properties(self):
        err = errors.error_redeclaration("a")
        assert err.code == "E405"
        assert err.message == "identifier 'a' has already been declared"
        assert err.args == ("identifier 'a' has already been declared",)


class TestHierarchy:
    """Test which exception class each error uses."""

    @pytest.mark.parametrize("err,cls", [
        (errors.error_unexpected_character("@", span()), LexerError),
        (errors.error_unexpected_eof("')'", span()), ParserError),
        (errors.error_undefined_identifier("x"), BriskReferenceError),
        (errors.error_type_mismatch("int", "string"), BriskTypeError),
        (errors.error_arity(True, 1, 2), ArityError),
        (errors.error_illegal_statement("break"), ControlFlowError),
        (errors.error_redeclaration("x"), RedeclarationError),
        (errors.error_const_assignment("x"), RedeclarationError),
        (errors.error_division_by_zero(), EvalError),
    ])
    def test_classes(self, err, cls):
        assert isinstance(err, cls)
        assert isinstance(err, BriskError)

    def test_syntax_errors(self):
        assert issubclass(LexerError, BriskSyntaxError)
        assert issubclass(ParserError, BriskSyntaxError)
        assert not issubclass(ParserError, EvalError)

    def test_runtime_errors(self):
        for cls in (BriskReferenceError, BriskTypeError, ArityError,
                    ControlFlowError, RedeclarationError):
            assert issubclass(cls, EvalError)

    def test_kind_in_message(self):
        assert str(errors.error_arity(False, 2, 1)).startswith("ArityError[E403]")
        assert str(errors.error_recursion_depth()).startswith("RuntimeError[E407]")

    @pytest.mark.parametrize("factory,args,code", [
        (errors.error_unterminated_string, (span(),), "E002"),
        (errors.error_unterminated_text_span, (span(),), "E003"),
        (errors.error_invalid_number_literal, ("0x1.", span()), "E006"),
        (errors.error_dangling_dollar, (span(),), "E009"),
        (errors.error_unexpected_token, ("';'", "'x'", span()), "E101"),
        (errors.error_invalid_expression, ("')'", span()), "E103"),
        (errors.error_invalid_numeric_literal, ("bin", "12b", span()), "E104"),
        (errors.error_unsupported_statement, ("jmp", span()), "E105"),
        (errors.error_invalid_assignment_target, (span(),), "E106"),
        (errors.error_unsupported_operands, ("+", "int", "list"), "E408"),
        (errors.error_bad_unary_operand, ("-", "string"), "E408"),
        (errors.error_not_callable, ("int",), "E409"),
        (errors.error_wrong_return_type, ("string", "int"), "E411"),
        (errors.error_cannot_read, ("a", "null"), "E413"),
        (errors.error_index_out_of_range, ("3", 1), "E414"),
        (errors.error_invalid_conversion, ("list", "int"), "E415"),
        (errors.error_negative_shift, (), "E416"),
        (errors.error_cannot_set, ("a", "int"), "E417"),
    ])
    def test_codes(self, factory, args, code):
        assert factory(*args).code == code


class TestPipelineErrors:
    """Test that errors from each stage are catchable as BriskError."""

    @pytest.mark.parametrize("source,cls", [
        ('"open', LexerError),
        ("(1", ParserError),
        ("undefined_name", BriskReferenceError),
    ])
    def test_stage(self, source, cls):
        with pytest.raises(BriskError) as exc_info:
            Interpreter().run(source)
        assert isinstance(exc_info.value, cls)
        assert exc_info.value.span is not None

    def test_lexer_error_has_source_line(self):
        with pytest.raises(LexerError) as exc_info:
            tokenize("int x = 1\nint y = #")
        assert exc_info.value.diagnostic.source_line == "int y = #"

    def test_error_in_earlier_function_quotes_its_definition(self):
        """A body error points into the input that defined the function."""
        interp = Interpreter()
        interp.run("int f(int x) => x / 0", filename="<repl:1>")
        with pytest.raises(EvalError) as exc_info:
            interp.run("f(7)", filename="<repl:2>")
        err = exc_info.value
        assert err.code == "E410"
        assert err.diagnostic.source_line == "int f(int x) => x / 0"
        assert err.span.start.filename == "<repl:1>"
        assert err.span.start.column == 17
        assert "f(7)" not in str(err)

    def test_call_site_error_quotes_current_input(self):
        """Arity errors belong to the call, not the definition."""
        interp = Interpreter()
        interp.run("int f(int x) => x")
        with pytest.raises(ArityError) as exc_info:
            interp.run("f()")
        assert exc_info.value.diagnostic.source_line == "f()"
