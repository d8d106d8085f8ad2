"""Parser: recursive descent, one method per grammar production."""

from __future__ import annotations

from .ast import (
    JArrayLit,
    JAssign,
    JBinary,
    JBlock,
    JBreak,
    JCall,
    JCast,
    JCatch,
    JClassDecl,
    JContinue,
    JDeclarator,
    JDoWhile,
    JEmpty,
    JExpr,
    JExprStmt,
    JFieldAccess,
    JFieldDecl,
    JFor,
    JForEach,
    JIf,
    JIncDec,
    JIndex,
    JInitializer,
    JInstanceOf,
    JLabeled,
    JLambda,
    JLiteral,
    JLocalClass,
    JLocalDecl,
    JMember,
    JMethodDecl,
    JMethodRef,
    JModule,
    JName,
    JNew,
    JParam,
    JReturn,
    JStmt,
    JSwitch,
    JSwitchCase,
    JTernary,
    JThrow,
    JTry,
    JType,
    JUnary,
    JWhile,
    Pos,
)
from .tokens import (
    TK_CHAR,
    TK_EOF,
    TK_FLOAT,
    TK_IDENT,
    TK_INT,
    TK_OP,
    TK_STRING,
    Token,
)

ASSIGN_OPS: set[str] = {
    "=",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "<<=",
}

PRIMITIVE_TYPES: set[str] = {
    "boolean",
    "byte",
    "char",
    "short",
    "int",
    "long",
    "float",
    "double",
    "void",
}

MODIFIERS: set[str] = {
    "public",
    "protected",
    "private",
    "static",
    "abstract",
    "final",
    "native",
    "synchronized",
    "transient",
    "volatile",
    "strictfp",
}

# Tokens that may follow a parenthesized type in a cast expression.
_CAST_FOLLOWERS: set[str] = {
    "(",
    "!",
    "~",
    "this",
    "super",
    "new",
    "true",
    "false",
    "null",
}


class ParseError(Exception):
    """Parse error with location info."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class Parser:
    """Recursive descent parser for the Java-like input language."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int) -> Token:
        return self._tok(self.pos + offset)

    def _tok(self, idx: int) -> Token:
        if idx >= len(self.tokens):
            return self.tokens[len(self.tokens) - 1]
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok.value == value and tok.type != TK_STRING and tok.type != TK_CHAR

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def at_ident(self) -> bool:
        return self.current().type == TK_IDENT

    def expect(self, value: str) -> Token:
        tok = self.current()
        if not self.at(value):
            raise self.error("expected '" + value + "', got '" + tok.value + "'")
        return self.advance()

    def expect_ident(self) -> Token:
        tok = self.current()
        if tok.type != TK_IDENT:
            raise self.error("expected identifier, got '" + tok.value + "'")
        return self.advance()

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.line, tok.col)

    def _pos(self) -> Pos:
        tok = self.current()
        return Pos(tok.line, tok.col)

    def _glued_gt(self) -> tuple[str, int]:
        """Glue adjacent '>' tokens into >, >>, >>>, >>=, >>>=. Returns (op, token_count)."""
        tok = self.current()
        if tok.type != TK_OP:
            return "", 0
        if tok.value == ">=":
            return ">=", 1
        if tok.value != ">":
            return "", 0
        op = ">"
        count = 1
        prev = tok
        while len(op) < 3:
            nxt = self.peek(count)
            if nxt.line != prev.line or nxt.col != prev.col + len(prev.value):
                break
            if nxt.value == ">":
                op += ">"
                count += 1
                prev = nxt
                continue
            if nxt.value == ">=":
                op += ">="
                count += 1
            break
        return op, count

    # ── Lookahead scans ──────────────────────────────────────

    def _scan_type(self, i: int) -> int:
        """Scan a type starting at token i. Returns the index after it, or -1."""
        tok = self._tok(i)
        if tok.value in PRIMITIVE_TYPES and tok.type != TK_IDENT:
            i += 1
        elif tok.type == TK_IDENT:
            i = self._scan_type_args(i + 1)
            while i >= 0 and self._tok(i).value == "." and self._tok(i + 1).type == TK_IDENT:
                i = self._scan_type_args(i + 2)
            if i < 0:
                return -1
        else:
            return -1
        while self._tok(i).value == "[" and self._tok(i + 1).value == "]":
            i += 2
        return i

    def _scan_type_args(self, i: int) -> int:
        if self._tok(i).value != "<":
            return i
        depth = 0
        while True:
            tok = self._tok(i)
            if tok.value == "<":
                depth += 1
            elif tok.value == ">":
                depth -= 1
                if depth == 0:
                    return i + 1
            elif tok.type == TK_IDENT or tok.value in PRIMITIVE_TYPES:
                pass
            elif tok.value not in (",", "?", ".", "[", "]", "extends", "super", "&"):
                return -1
            i += 1

    def _skip_modifiers_at(self, i: int) -> int:
        while True:
            tok = self._tok(i)
            if tok.value == "final":
                i += 1
            elif tok.value == "@" and self._tok(i + 1).type == TK_IDENT:
                i += 2
                while self._tok(i).value == "." and self._tok(i + 1).type == TK_IDENT:
                    i += 2
                if self._tok(i).value == "(":
                    i = self._skip_parens_at(i)
            else:
                return i

    def _skip_parens_at(self, i: int) -> int:
        """Skip a balanced (...) group starting at token i. Returns the index after ')'."""
        depth = 0
        while self._tok(i).type != TK_EOF:
            value = self._tok(i).value
            if value == "(":
                depth += 1
            elif value == ")":
                depth -= 1
                if depth == 0:
                    return i + 1
            i += 1
        return i

    def _at_local_decl(self) -> bool:
        i = self._skip_modifiers_at(self.pos)
        j = self._scan_type(i)
        return j >= 0 and self._tok(j).type == TK_IDENT

    def _at_foreach_header(self) -> bool:
        i = self._skip_modifiers_at(self.pos)
        j = self._scan_type(i)
        if j < 0 or self._tok(j).type != TK_IDENT:
            return False
        return self._tok(j + 1).value == ":"

    def _is_lambda(self) -> bool:
        """Check if the current token begins a lambda: `x ->` or `( ... ) ->`."""
        tok = self.current()
        if tok.type == TK_IDENT:
            return self.peek(1).value == "->"
        if tok.value != "(":
            return False
        end = self._skip_parens_at(self.pos)
        return self._tok(end).value == "->"

    def _is_cast(self) -> bool:
        """Check if '(' begins a cast: a type, ')', then an operand start."""
        if not self.at("("):
            return False
        j = self._scan_type(self.pos + 1)
        if j < 0 or self._tok(j).value != ")":
            return False
        if self.peek(1).value in PRIMITIVE_TYPES:
            return True
        nxt = self._tok(j + 1)
        if nxt.type in (TK_IDENT, TK_INT, TK_FLOAT, TK_STRING, TK_CHAR):
            return True
        return nxt.value in _CAST_FOLLOWERS

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> JModule:
        classes: list[JClassDecl] = []
        while not self.at_type(TK_EOF):
            if self.at(";"):
                self.advance()
                continue
            pos = self._pos()
            modifiers = self.parse_modifiers()
            classes.append(self.parse_class_decl(pos, modifiers))
        return JModule(classes)

    def parse_modifiers(self) -> list[str]:
        modifiers: list[str] = []
        while True:
            tok = self.current()
            if tok.value == "@" and self.peek(1).type == TK_IDENT:
                self.pos = self._skip_modifiers_at(self.pos)
                continue
            if tok.value in MODIFIERS and tok.type != TK_IDENT:
                modifiers.append(self.advance().value)
                continue
            return modifiers

    def parse_class_decl(self, pos: Pos, modifiers: list[str]) -> JClassDecl:
        self.expect("class")
        name_tok = self.expect_ident()
        if self.at("<"):
            self._skip_type_params()
        if self.at("extends"):
            self.advance()
            self.parse_type()
        if self.at("implements"):
            self.advance()
            self.parse_type()
            while self.at(","):
                self.advance()
                self.parse_type()
        members = self.parse_class_body(name_tok.value)
        return JClassDecl(pos, modifiers, name_tok.value, members)

    def parse_class_body(self, class_name: str) -> list[JMember]:
        """ClassBody = '{' Member* '}'. An anonymous body passes an empty class_name."""
        self.expect("{")
        members: list[JMember] = []
        while not self.at("}"):
            if self.at_type(TK_EOF):
                raise self.error("unexpected end of input in class body")
            member = self.parse_member(class_name)
            if member is not None:
                members.append(member)
        self.expect("}")
        return members

    def _skip_type_params(self) -> None:
        end = self._scan_type_args(self.pos)
        if end < 0:
            raise self.error("malformed type parameters")
        self.pos = end

    def parse_member(self, class_name: str) -> JMember | None:
        pos = self._pos()
        if self.at(";"):
            self.advance()
            return None
        modifiers = self.parse_modifiers()
        if self.at("{"):
            body = self.parse_block()
            return JInitializer(pos, "static" in modifiers, body)
        if self.at("class"):
            return self.parse_class_decl(pos, modifiers)
        if self.at("<"):
            self._skip_type_params()
        if self.at_ident() and self.current().value == class_name and self.peek(1).value == "(":
            name_tok = self.advance()
            return self._parse_method_rest(pos, modifiers, None, name_tok.value)
        typ = self.parse_type()
        name_tok = self.expect_ident()
        if self.at("("):
            return self._parse_method_rest(pos, modifiers, typ, name_tok.value)
        declarators = [self._parse_declarator_rest(name_tok)]
        while self.at(","):
            self.advance()
            declarators.append(self._parse_declarator_rest(self.expect_ident()))
        self.expect(";")
        return JFieldDecl(pos, modifiers, typ, declarators)

    def _parse_method_rest(
        self, pos: Pos, modifiers: list[str], ret: JType | None, name: str
    ) -> JMethodDecl:
        self.expect("(")
        params = self.parse_param_list()
        self.expect(")")
        while self.at("[") and self.peek(1).value == "]":
            self.advance()
            self.advance()
        if self.at("throws"):
            self.advance()
            self.parse_type()
            while self.at(","):
                self.advance()
                self.parse_type()
        if self.at(";"):
            self.advance()
            return JMethodDecl(pos, modifiers, ret, name, params, None)
        body = self.parse_block()
        return JMethodDecl(pos, modifiers, ret, name, params, body)

    def parse_param_list(self) -> list[JParam]:
        params: list[JParam] = []
        if self.at(")"):
            return params
        params.append(self.parse_param())
        while self.at(","):
            self.advance()
            params.append(self.parse_param())
        return params

    def parse_param(self) -> JParam:
        modifiers = self.parse_modifiers()
        typ = self.parse_type()
        varargs = False
        if self.at("..."):
            self.advance()
            varargs = True
        name_tok = self.expect_ident()
        while self.at("[") and self.peek(1).value == "]":
            self.advance()
            self.advance()
            typ.dims += 1
        return JParam(Pos(name_tok.line, name_tok.col), modifiers, typ, name_tok.value, varargs)

    # ── Types ────────────────────────────────────────────────

    def parse_type(self) -> JType:
        """Type = ( Primitive | Name TypeArgs? ( '.' Name TypeArgs? )* ) ( '[' ']' )*"""
        pos = self._pos()
        tok = self.current()
        args: list[JType] = []
        if tok.value in PRIMITIVE_TYPES and tok.type != TK_IDENT:
            self.advance()
            name = tok.value
        elif tok.type == TK_IDENT:
            self.advance()
            name = tok.value
            args = self.parse_type_args()
            while self.at(".") and self.peek(1).type == TK_IDENT:
                self.advance()
                name += "." + self.advance().value
                args = self.parse_type_args()
        else:
            raise self.error("expected type, got '" + tok.value + "'")
        dims = 0
        while self.at("[") and self.peek(1).value == "]":
            self.advance()
            self.advance()
            dims += 1
        return JType(pos, name, args, dims)

    def parse_type_args(self) -> list[JType]:
        """TypeArgs = '<' ( TypeArg ( ',' TypeArg )* )? '>'"""
        args: list[JType] = []
        if not self.at("<"):
            return args
        self.advance()
        if self.at(">"):
            self.advance()
            return args
        args.append(self.parse_type_arg())
        while self.at(","):
            self.advance()
            args.append(self.parse_type_arg())
        self.expect(">")
        return args

    def parse_type_arg(self) -> JType:
        if not self.at("?"):
            return self.parse_type()
        pos = self._pos()
        self.advance()
        bounds: list[JType] = []
        if self.at("extends") or self.at("super"):
            self.advance()
            bounds.append(self.parse_type())
        return JType(pos, "?", bounds, 0)

    # ── Statements ───────────────────────────────────────────

    def parse_block(self) -> JBlock:
        pos = self._pos()
        self.expect("{")
        stmts: list[JStmt] = []
        while not self.at("}"):
            if self.at_type(TK_EOF):
                raise self.error("unexpected end of input in block")
            stmts.append(self.parse_stmt())
        self.expect("}")
        return JBlock(pos, stmts)

    def parse_stmt(self) -> JStmt:
        tok = self.current()
        if tok.type == TK_STRING or tok.type == TK_CHAR:
            return self.parse_expr_stmt()
        value = tok.value
        if value == "{":
            return self.parse_block()
        if value == ";":
            pos = self._pos()
            self.advance()
            return JEmpty(pos)
        if value == "if":
            return self.parse_if_stmt()
        if value == "while":
            return self.parse_while_stmt()
        if value == "do":
            return self.parse_do_stmt()
        if value == "for":
            return self.parse_for_stmt()
        if value == "switch":
            return self.parse_switch_stmt()
        if value == "try":
            return self.parse_try_stmt()
        if value == "return":
            return self.parse_return_stmt()
        if value == "throw":
            return self.parse_throw_stmt()
        if value == "break" or value == "continue":
            return self.parse_jump_stmt()
        if value == "synchronized":
            return self.parse_synchronized_stmt()
        if self._tok(self._skip_modifiers_at(self.pos)).value == "class":
            pos = self._pos()
            modifiers = self.parse_modifiers()
            return JLocalClass(pos, self.parse_class_decl(pos, modifiers))
        if tok.type == TK_IDENT and self.peek(1).value == ":":
            pos = self._pos()
            label = self.advance().value
            self.advance()
            return JLabeled(pos, label, self.parse_stmt())
        if self._at_local_decl():
            decl = self.parse_local_decl()
            self.expect(";")
            return decl
        return self.parse_expr_stmt()

    def parse_local_decl(self) -> JLocalDecl:
        pos = self._pos()
        modifiers = self.parse_modifiers()
        typ = self.parse_type()
        declarators = [self._parse_declarator_rest(self.expect_ident())]
        while self.at(","):
            self.advance()
            declarators.append(self._parse_declarator_rest(self.expect_ident()))
        return JLocalDecl(pos, modifiers, typ, declarators)

    def _parse_declarator_rest(self, name_tok: Token) -> JDeclarator:
        pos = Pos(name_tok.line, name_tok.col)
        dims = 0
        while self.at("[") and self.peek(1).value == "]":
            self.advance()
            self.advance()
            dims += 1
        init: JExpr | None = None
        if self.at("="):
            self.advance()
            if self.at("{"):
                init = self.parse_array_lit()
            else:
                init = self.parse_expr()
        return JDeclarator(pos, name_tok.value, dims, init)

    def parse_if_stmt(self) -> JIf:
        pos = self._pos()
        self.expect("if")
        cond = self._parse_paren_expr()
        then = self.parse_stmt()
        orelse: JStmt | None = None
        if self.at("else"):
            self.advance()
            orelse = self.parse_stmt()
        return JIf(pos, cond, then, orelse)

    def parse_while_stmt(self) -> JWhile:
        pos = self._pos()
        self.expect("while")
        cond = self._parse_paren_expr()
        body = self.parse_stmt()
        return JWhile(pos, cond, body)

    def parse_do_stmt(self) -> JDoWhile:
        pos = self._pos()
        self.expect("do")
        body = self.parse_stmt()
        self.expect("while")
        cond = self._parse_paren_expr()
        self.expect(";")
        return JDoWhile(pos, body, cond)

    def parse_for_stmt(self) -> JStmt:
        pos = self._pos()
        self.expect("for")
        self.expect("(")
        if self._at_foreach_header():
            modifiers = self.parse_modifiers()
            typ = self.parse_type()
            name_tok = self.expect_ident()
            self.expect(":")
            iterable = self.parse_expr()
            self.expect(")")
            body = self.parse_stmt()
            param = JParam(Pos(name_tok.line, name_tok.col), modifiers, typ, name_tok.value)
            return JForEach(pos, param, iterable, body)
        init: list[JStmt] = []
        if not self.at(";"):
            if self._at_local_decl():
                init.append(self.parse_local_decl())
            else:
                for expr in self._parse_expr_list():
                    init.append(JExprStmt(expr.pos, expr))
        self.expect(";")
        cond: JExpr | None = None
        if not self.at(";"):
            cond = self.parse_expr()
        self.expect(";")
        update: list[JExpr] = []
        if not self.at(")"):
            update = self._parse_expr_list()
        self.expect(")")
        body = self.parse_stmt()
        return JFor(pos, init, cond, update, body)

    def parse_switch_stmt(self) -> JSwitch:
        pos = self._pos()
        self.expect("switch")
        expr = self._parse_paren_expr()
        self.expect("{")
        cases: list[JSwitchCase] = []
        while not self.at("}"):
            cases.append(self.parse_switch_case())
        self.expect("}")
        return JSwitch(pos, expr, cases)

    def parse_switch_case(self) -> JSwitchCase:
        pos = self._pos()
        labels: list[JExpr] = []
        is_default = False
        if not (self.at("case") or self.at("default")):
            raise self.error("expected 'case' or 'default', got '" + self.current().value + "'")
        while self.at("case") or self.at("default"):
            if self.at("default"):
                self.advance()
                is_default = True
            else:
                self.advance()
                labels.append(self.parse_ternary())
                while self.at(","):
                    self.advance()
                    labels.append(self.parse_ternary())
            if self.at("->"):
                raise self.error("arrow-form switch cases are not supported")
            self.expect(":")
        body: list[JStmt] = []
        while not (self.at("case") or self.at("default") or self.at("}")):
            if self.at_type(TK_EOF):
                raise self.error("unexpected end of input in switch")
            body.append(self.parse_stmt())
        return JSwitchCase(pos, labels, is_default, body)

    def parse_try_stmt(self) -> JTry:
        pos = self._pos()
        self.expect("try")
        if self.at("("):
            raise self.error("try-with-resources is not supported")
        body = self.parse_block()
        catches: list[JCatch] = []
        finally_body: JBlock | None = None
        while self.at("catch"):
            catches.append(self.parse_catch())
        if self.at("finally"):
            self.advance()
            finally_body = self.parse_block()
        if len(catches) == 0 and finally_body is None:
            raise ParseError("try must have catch or finally", pos.line, pos.col)
        return JTry(pos, body, catches, finally_body)

    def parse_catch(self) -> JCatch:
        pos = self._pos()
        self.expect("catch")
        self.expect("(")
        modifiers = self.parse_modifiers()
        types: list[JType] = [self.parse_type()]
        while self.at("|"):
            self.advance()
            types.append(self.parse_type())
        name_tok = self.expect_ident()
        self.expect(")")
        body = self.parse_block()
        param = JParam(Pos(name_tok.line, name_tok.col), modifiers, types[0], name_tok.value)
        return JCatch(pos, param, types, body)

    def parse_return_stmt(self) -> JReturn:
        pos = self._pos()
        self.expect("return")
        value: JExpr | None = None
        if not self.at(";"):
            value = self.parse_expr()
        self.expect(";")
        return JReturn(pos, value)

    def parse_throw_stmt(self) -> JThrow:
        pos = self._pos()
        self.expect("throw")
        expr = self.parse_expr()
        self.expect(";")
        return JThrow(pos, expr)

    def parse_jump_stmt(self) -> JStmt:
        pos = self._pos()
        keyword = self.advance().value
        label: str | None = None
        if self.at_ident():
            label = self.advance().value
        self.expect(";")
        if keyword == "break":
            return JBreak(pos, label)
        return JContinue(pos, label)

    def parse_synchronized_stmt(self) -> JBlock:
        """synchronized (lock) { ... } evaluates the lock, then runs the block."""
        pos = self._pos()
        self.expect("synchronized")
        lock = self._parse_paren_expr()
        body = self.parse_block()
        return JBlock(pos, [JExprStmt(lock.pos, lock), body])

    def parse_expr_stmt(self) -> JExprStmt:
        pos = self._pos()
        expr = self.parse_expr()
        self.expect(";")
        return JExprStmt(pos, expr)

    def _parse_paren_expr(self) -> JExpr:
        self.expect("(")
        expr = self.parse_expr()
        self.expect(")")
        return expr

    def _parse_expr_list(self) -> list[JExpr]:
        exprs: list[JExpr] = [self.parse_expr()]
        while self.at(","):
            self.advance()
            exprs.append(self.parse_expr())
        return exprs

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> JExpr:
        return self.parse_assignment()

    def parse_assignment(self) -> JExpr:
        """Assignment = Ternary ( AssignOp Assignment )?  (right-associative)"""
        left = self.parse_ternary()
        tok = self.current()
        op = ""
        count = 0
        if tok.type == TK_OP and tok.value in ASSIGN_OPS:
            op = tok.value
            count = 1
        else:
            glued, glued_count = self._glued_gt()
            if glued == ">>=" or glued == ">>>=":
                op = glued
                count = glued_count
        if op == "":
            return left
        if not isinstance(left, (JName, JFieldAccess, JIndex)):
            raise self.error("invalid assignment target")
        for _ in range(count):
            self.advance()
        if self.at("{") and op == "=":
            value: JExpr = self.parse_array_lit()
        else:
            value = self.parse_assignment()
        return JAssign(left.pos, op, left, value)

    def parse_ternary(self) -> JExpr:
        """Ternary = Or ( '?' Expr ':' Ternary )?"""
        expr = self.parse_or()
        if self.at("?"):
            self.advance()
            then_expr = self.parse_expr()
            self.expect(":")
            else_expr = self.parse_ternary()
            return JTernary(expr.pos, expr, then_expr, else_expr)
        return expr

    def parse_or(self) -> JExpr:
        """Or = And ( '||' And )*"""
        left = self.parse_and()
        while self.at("||"):
            self.advance()
            right = self.parse_and()
            left = JBinary(left.pos, "||", left, right)
        return left

    def parse_and(self) -> JExpr:
        """And = BitOr ( '&&' BitOr )*"""
        left = self.parse_bit_or()
        while self.at("&&"):
            self.advance()
            right = self.parse_bit_or()
            left = JBinary(left.pos, "&&", left, right)
        return left

    def parse_bit_or(self) -> JExpr:
        """BitOr = BitXor ( '|' BitXor )*"""
        left = self.parse_bit_xor()
        while self.at("|"):
            self.advance()
            right = self.parse_bit_xor()
            left = JBinary(left.pos, "|", left, right)
        return left

    def parse_bit_xor(self) -> JExpr:
        """BitXor = BitAnd ( '^' BitAnd )*"""
        left = self.parse_bit_and()
        while self.at("^"):
            self.advance()
            right = self.parse_bit_and()
            left = JBinary(left.pos, "^", left, right)
        return left

    def parse_bit_and(self) -> JExpr:
        """BitAnd = Equality ( '&' Equality )*"""
        left = self.parse_equality()
        while self.at("&"):
            self.advance()
            right = self.parse_equality()
            left = JBinary(left.pos, "&", left, right)
        return left

    def parse_equality(self) -> JExpr:
        """Equality = Relational ( ( '==' | '!=' ) Relational )*"""
        left = self.parse_relational()
        while self.at("==") or self.at("!="):
            op = self.advance().value
            right = self.parse_relational()
            left = JBinary(left.pos, op, left, right)
        return left

    def parse_relational(self) -> JExpr:
        """Relational = Shift ( ( '<' | '>' | '<=' | '>=' ) Shift | 'instanceof' Type )*"""
        left = self.parse_shift()
        while True:
            if self.at("instanceof"):
                self.advance()
                typ = self.parse_type()
                left = JInstanceOf(left.pos, left, typ)
                continue
            if self.at("<") or self.at("<="):
                op = self.advance().value
            else:
                glued, _ = self._glued_gt()
                if glued != ">" and glued != ">=":
                    return left
                op = glued
                self.advance()
            right = self.parse_shift()
            left = JBinary(left.pos, op, left, right)

    def parse_shift(self) -> JExpr:
        """Shift = Sum ( ( '<<' | '>>' | '>>>' ) Sum )*"""
        left = self.parse_sum()
        while True:
            if self.at("<<"):
                op = self.advance().value
            else:
                glued, count = self._glued_gt()
                if glued != ">>" and glued != ">>>":
                    return left
                op = glued
                for _ in range(count):
                    self.advance()
            right = self.parse_sum()
            left = JBinary(left.pos, op, left, right)

    def parse_sum(self) -> JExpr:
        """Sum = Product ( ( '+' | '-' ) Product )*"""
        left = self.parse_product()
        while self.at("+") or self.at("-"):
            op = self.advance().value
            right = self.parse_product()
            left = JBinary(left.pos, op, left, right)
        return left

    def parse_product(self) -> JExpr:
        """Product = Unary ( ( '*' | '/' | '%' ) Unary )*"""
        left = self.parse_unary()
        while self.at("*") or self.at("/") or self.at("%"):
            op = self.advance().value
            right = self.parse_unary()
            left = JBinary(left.pos, op, left, right)
        return left

    def parse_unary(self) -> JExpr:
        """Unary = ( '+' | '-' | '!' | '~' ) Unary | ( '++' | '--' ) Unary | Cast | Postfix"""
        tok = self.current()
        if tok.type == TK_OP and tok.value in ("+", "-", "!", "~"):
            pos = self._pos()
            op = self.advance().value
            operand = self.parse_unary()
            return JUnary(pos, op, operand)
        if tok.type == TK_OP and (tok.value == "++" or tok.value == "--"):
            pos = self._pos()
            op = self.advance().value
            target = self.parse_unary()
            if not isinstance(target, (JName, JFieldAccess, JIndex)):
                raise ParseError("invalid " + op + " operand", pos.line, pos.col)
            return JIncDec(pos, op, True, target)
        if self._is_cast():
            pos = self._pos()
            self.advance()
            typ = self.parse_type()
            self.expect(")")
            operand = self.parse_unary()
            return JCast(pos, typ, operand)
        return self.parse_postfix()

    def parse_postfix(self) -> JExpr:
        """Postfix = Primary ( Suffix )*"""
        expr = self.parse_primary()
        while True:
            if self.at("."):
                self.advance()
                tok = self.current()
                if tok.type == TK_IDENT or tok.value in ("class", "this"):
                    self.advance()
                    expr = JFieldAccess(expr.pos, expr, tok.value)
                else:
                    raise self.error("expected field name after '.'")
            elif self.at("["):
                self.advance()
                index = self.parse_expr()
                self.expect("]")
                expr = JIndex(expr.pos, expr, index)
            elif self.at("("):
                self.advance()
                args = self.parse_arg_list()
                self.expect(")")
                expr = JCall(expr.pos, expr, args)
            elif self.at("::"):
                self.advance()
                tok = self.current()
                if tok.type != TK_IDENT and tok.value != "new":
                    raise self.error("expected method name after '::'")
                self.advance()
                expr = JMethodRef(expr.pos, expr, tok.value)
            elif self.at_type(TK_OP) and (self.at("++") or self.at("--")):
                if not isinstance(expr, (JName, JFieldAccess, JIndex)):
                    raise self.error("invalid " + self.current().value + " operand")
                op = self.advance().value
                expr = JIncDec(expr.pos, op, False, expr)
            else:
                break
        return expr

    def parse_arg_list(self) -> list[JExpr]:
        """ArgList = ( Expr ( ',' Expr )* )?"""
        args: list[JExpr] = []
        if self.at(")"):
            return args
        args.append(self.parse_expr())
        while self.at(","):
            self.advance()
            args.append(self.parse_expr())
        return args

    def parse_primary(self) -> JExpr:
        """Parse a primary expression."""
        tok = self.current()
        pos = self._pos()

        # Literals
        if tok.type == TK_INT:
            self.advance()
            return JLiteral(pos, "int", tok.value)
        if tok.type == TK_FLOAT:
            self.advance()
            return JLiteral(pos, "float", tok.value)
        if tok.type == TK_STRING:
            self.advance()
            return JLiteral(pos, "string", tok.value)
        if tok.type == TK_CHAR:
            self.advance()
            return JLiteral(pos, "char", tok.value)
        if tok.value == "true" or tok.value == "false":
            self.advance()
            return JLiteral(pos, "bool", tok.value)
        if tok.value == "null":
            self.advance()
            return JLiteral(pos, "null", tok.value)

        # Lambda: x -> ..., (a, b) -> ..., (int a) -> ...
        if self._is_lambda():
            return self.parse_lambda()

        # Names; this, super and primitive names (int.class) never resolve
        if tok.type == TK_IDENT or tok.value in ("this", "super"):
            self.advance()
            return JName(pos, tok.value)
        if tok.value in PRIMITIVE_TYPES:
            self.advance()
            return JName(pos, tok.value)

        if tok.value == "(":
            self.advance()
            expr = self.parse_expr()
            self.expect(")")
            return expr

        if tok.value == "new":
            return self.parse_new()

        raise self.error("expected expression, got '" + tok.value + "'")

    def parse_new(self) -> JNew:
        """New = 'new' Type ( '(' Args ')' ClassBody? | ( '[' Expr? ']' )+ ArrayLit? )"""
        pos = self._pos()
        self.expect("new")
        typ = self.parse_type()
        if typ.dims > 0:
            # new int[] { ... }
            init = self.parse_array_lit()
            return JNew(pos, typ, [], [], init)
        if self.at("("):
            self.advance()
            args = self.parse_arg_list()
            self.expect(")")
            body = None
            if self.at("{"):
                body = self.parse_class_body("")
            return JNew(pos, typ, args, [], None, body)
        if not self.at("["):
            raise self.error("expected '(' or '[' after 'new " + typ.name + "'")
        dims: list[JExpr] = []
        while self.at("["):
            self.advance()
            if self.at("]"):
                self.advance()
                typ.dims += 1
                continue
            dims.append(self.parse_expr())
            self.expect("]")
            typ.dims += 1
        return JNew(pos, typ, [], dims, None)

    def parse_array_lit(self) -> JArrayLit:
        """ArrayLit = '{' ( Init ( ',' Init )* ','? )? '}'"""
        pos = self._pos()
        self.expect("{")
        elements: list[JExpr] = []
        while not self.at("}"):
            if self.at("{"):
                elements.append(self.parse_array_lit())
            else:
                elements.append(self.parse_expr())
            if not self.at(","):
                break
            self.advance()
        self.expect("}")
        return JArrayLit(pos, elements)

    def parse_lambda(self) -> JLambda:
        """Lambda = ( IDENT | '(' LambdaParams ')' ) '->' ( Block | Expr )"""
        pos = self._pos()
        params: list[JParam] = []
        if self.at_ident():
            name_tok = self.advance()
            params.append(JParam(pos, [], None, name_tok.value))
        else:
            self.expect("(")
            if not self.at(")"):
                if self.at_ident() and self.peek(1).value in (",", ")"):
                    params.append(self._parse_inferred_param())
                    while self.at(","):
                        self.advance()
                        params.append(self._parse_inferred_param())
                else:
                    params = self.parse_param_list()
            self.expect(")")
        self.expect("->")
        if self.at("{"):
            return JLambda(pos, params, self.parse_block())
        return JLambda(pos, params, self.parse_expr())

    def _parse_inferred_param(self) -> JParam:
        pos = self._pos()
        name_tok = self.expect_ident()
        return JParam(pos, [], None, name_tok.value)
