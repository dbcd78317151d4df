"""Sample catalog — starter rules written by ``auditrules seed``."""

from auditrules.rules.models import Rule

JAVA_SQL_INJECTION = Rule(
    id="java_001",
    language="java",
    name="SQL Injection Detection",
    description="Detects potential SQL injection vulnerabilities",
    severity="high",
    tags=["sqli", "database", "injection"],
    pattern='String query = "SELECT * FROM users WHERE username = \'" + userInput + "\'";',
    remediation="Use prepared statements",
)

PY_JINJA2_XSS = Rule(
    id="py_001",
    language="python",
    name="XSS in Jinja2 Templates",
    description="Detects Cross-Site Scripting in Python Jinja2 templates",
    severity="medium",
    tags=["xss", "web", "python"],
    pattern='import os\n# Example: Potential command injection\ncommand = "ls -l " + user_input\nos.system(command)',
    remediation="Use autoescaping and sanitize input.",
)

JS_INSECURE_RANDOM = Rule(
    id="js_001",
    language="javascript",
    name="Insecure Randomness",
    description="Detects use of Math.random() for security purposes",
    severity="low",
    tags=["crypto", "javascript"],
    pattern="function generateToken() {\n  return Math.random().toString(36).substring(2);\n}",
    remediation="Use crypto.getRandomValues() or a secure library for token generation.",
    enabled=False,
)

SCALA_CPG_LITERALS = Rule(
    id="scala_cpg_001",
    language="scala",
    name="CPG: Finding all literals",
    description="Joern CPG query to find all literals",
    severity="info",
    tags=["cpg", "scala", "joern"],
    pattern="cpg.literal.toJsonPretty",
    remediation="N/A",
)

JAVA_HARDCODED_CREDENTIALS = Rule(
    id="java_002",
    language="java",
    name="Hardcoded Credentials",
    description="Finds hardcoded passwords or API keys",
    severity="high",
    tags=["security", "credentials"],
    pattern='private final String API_KEY = "your_hardcoded_api_key";',
    remediation="Store credentials securely using environment variables or a secrets management system.",
)

CSHARP_PATH_TRAVERSAL = Rule(
    id="csharp_001",
    language="csharp",
    name="Path Traversal",
    description="Detects potential path traversal vulnerabilities when handling file paths.",
    severity="medium",
    tags=["file", "security", "csharp"],
    pattern='string path = Request.QueryString["filePath"];\nSystem.IO.File.ReadAllText(path);',
    remediation="Sanitize user input for file paths and use Path.GetFullPath to normalize paths.",
)

GO_UNBUFFERED_CHANNEL = Rule(
    id="go_001",
    language="go",
    name="Unbuffered Channel Risk",
    description="Detects unbuffered channels that might lead to deadlocks if not handled correctly.",
    severity="low",
    tags=["concurrency", "go"],
    pattern="ch := make(chan int)\ngo func() {\n\tch <- 1 // Potential block if no receiver\n}()",
    remediation="Use buffered channels or ensure proper goroutine synchronization for send/receive operations.",
    enabled=False,
)

JAVA_XXE = Rule(
    id="java_003",
    language="java",
    name="XML External Entity (XXE)",
    description="Detects XXE vulnerabilities in XML parsers.",
    severity="high",
    tags=["xxe", "xml", "java"],
    pattern=(
        "DocumentBuilderFactory dbf = DocumentBuilderFactory.newInstance();\n"
        "DocumentBuilder db = dbf.newDocumentBuilder();\n"
        "Document doc = db.parse(new InputSource(new StringReader(xmlInput)));"
    ),
    remediation="Disable DTDs, external entities, and use secure XML parsing configurations.",
)

PY_PICKLE_DESERIALIZATION = Rule(
    id="python_002",
    language="python",
    name="Deserialization of Untrusted Data (pickle)",
    description="Detects use of pickle for deserializing untrusted data.",
    severity="high",
    tags=["deserialization", "security", "python"],
    pattern="import pickle\n\ndata = pickle.loads(user_controlled_input)",
    remediation=(
        "Avoid using pickle for untrusted data. Use safer serialization formats "
        "like JSON if possible, or implement strict validation."
    ),
)

JS_EVAL = Rule(
    id="js_002",
    language="javascript",
    name="Use of eval()",
    description="Detects potentially dangerous use of eval() with dynamic input.",
    severity="medium",
    tags=["javascript", "security", "injection"],
    pattern='let code = request.getParameter("code");\neval(code);',
    remediation=(
        "Avoid eval(). Use safer alternatives like JSON.parse for data parsing, "
        "or function constructors if dynamic code execution is absolutely "
        "necessary and input is sanitized."
    ),
)

SAMPLE_RULES: list[Rule] = [
    JAVA_SQL_INJECTION,
    PY_JINJA2_XSS,
    JS_INSECURE_RANDOM,
    SCALA_CPG_LITERALS,
    JAVA_HARDCODED_CREDENTIALS,
    CSHARP_PATH_TRAVERSAL,
    GO_UNBUFFERED_CHANNEL,
    JAVA_XXE,
    PY_PICKLE_DESERIALIZATION,
    JS_EVAL,
]

__all__ = ["SAMPLE_RULES"]
