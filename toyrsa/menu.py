"""Interactive menu to create keys and encrypt or decrypt files.

Run with ``python -m toyrsa`` or the ``toyrsa`` console script.
"""

from .cipher import encrypt, decrypt
from .errors import ToyRSAError
from .keygen import KeyGenerator
from .keys import PublicKey, PrivateKey
from . import selftest
from . import store


MENU = ("1) Create Private/Public Key\n"
        "2) Load a Private Key\n"
        "3) Load a Public Key\n"
        "4) Encrypt\n"
        "5) Decrypt\n"
        "6) Run Test Cases\n"
        "7) Quit")

QUIT = 7


class Menu(object):
    """The menu loop. ask and say default to input and print; source is the
    random source used for keys and self-tests."""

    def __init__(self, ask=None, say=None, source=None):
        self.ask = ask or input
        self.say = say or print
        self.source = source
        self.pub = None
        self.priv = None

    def ask_int(self, prompt):
        while True:
            answer = self.ask(prompt).strip()
            try:
                return int(answer)
            except ValueError:
                self.say("Not a number: %r" % answer)

    def ask_name(self, prompt):
        while True:
            answer = self.ask(prompt).strip()
            if answer:
                return answer

    def create_keys(self):
        digits = self.ask_int("How many digits should the prime numbers be?: ")
        pub_file = self.ask_name("What do you want to name the public key file?: ")
        priv_file = self.ask_name("What do you want to name the private key file?: ")

        self.say("Generating primes and creating keys...")
        pub, priv = KeyGenerator(self.source).generate(digits)
        self.say("p = %s" % priv.p)
        self.say("q = %s" % priv.q)
        self.say("n = %s" % pub.n)
        self.say("phi = %s" % priv.phi)
        self.say("e = %s" % pub.e)
        self.say("d = %s" % priv.d)

        self.say("Saving public key to: %s" % pub_file)
        store.save_key(pub, pub_file)
        self.say("Saving private key to: %s" % priv_file)
        store.save_key(priv, priv_file)

    def load_private_key(self):
        name = self.ask_name("What is the name of the private key file?: ")
        self.priv = store.load_key(name, PrivateKey)
        self.say("Loaded private key, n = %s" % self.priv.n)

    def load_public_key(self):
        name = self.ask_name("What is the name of the public key file?: ")
        self.pub = store.load_key(name, PublicKey)
        self.say("Loaded public key, n = %s" % self.pub.n)

    def encrypt_file(self):
        if self.pub is None:
            self.say("Public key not loaded")
            return

        plain_file = self.ask_name("What is the name of the file to be encrypted?: ")
        plaintext = store.load_plaintext(plain_file)
        self.say("Encrypting... plain text: %s" % plaintext)
        cipher = encrypt(plaintext, self.pub)
        self.say("Cipher text = [%s]" % ", ".join(str(c) for c in cipher))

        cipher_file = self.ask_name("What do you want to name the encrypted file?: ")
        store.save_ciphertext(cipher, cipher_file)

    def decrypt_file(self):
        if self.priv is None:
            self.say("Private key not loaded")
            return

        cipher_file = self.ask_name("What is the name of the file to be decrypted?: ")
        cipher = store.load_ciphertext(cipher_file)
        self.say("Decrypted Message = %s" % decrypt(cipher, self.priv))

    def run_tests(self):
        cases = self.ask_int("How many tests cases do you want to run?: ")
        selftest.run(cases, source=self.source, report=self.say)

    def run(self):
        actions = {
            1: self.create_keys,
            2: self.load_private_key,
            3: self.load_public_key,
            4: self.encrypt_file,
            5: self.decrypt_file,
            6: self.run_tests,
        }

        while True:
            self.say("")
            self.say(MENU)
            choice = self.ask_int("Enter a number from the menu: ")
            if choice == QUIT:
                return

            action = actions.get(choice)
            if action is None:
                self.say("Unknown option: %d" % choice)
                continue

            try:
                action()
            except (ToyRSAError, OSError) as e:
                self.say("Error: %s" % e)


def main():
    try:
        Menu().run()
    except (EOFError, KeyboardInterrupt):
        print()
    return 0


# --- TESTS ---


class _Script(object):
    def __init__(self, answers):
        self.answers = list(answers)
        self.lines = []

    def ask(self, prompt):
        self.lines.append(prompt)
        return self.answers.pop(0)

    def say(self, line):
        self.lines.append(line)

    def output(self):
        return "\n".join(self.lines)


def test_session(tmpdir):
    pub_file = str(tmpdir.join("pub.key"))
    priv_file = str(tmpdir.join("priv.key"))
    plain_file = tmpdir.join("plain.txt")
    plain_file.write("Meet me at 10, by the old bridge.\n")
    cipher_file = str(tmpdir.join("cipher.txt"))

    script = _Script([
        "1", "12", pub_file, priv_file,
        "3", pub_file,
        "2", priv_file,
        "4", str(plain_file), cipher_file,
        "5", cipher_file,
        "7",
    ])
    Menu(script.ask, script.say).run()

    out = script.output()
    assert "Generating primes and creating keys..." in out
    assert "Decrypted Message = MEETMEATBYTHEOLDBRIDGE" in out
    assert len(store.load_ciphertext(cipher_file)) > 0


def test_missing_keys():
    script = _Script(["4", "5", "7"])
    Menu(script.ask, script.say).run()
    out = script.output()
    assert "Public key not loaded" in out
    assert "Private key not loaded" in out


def test_bad_input(tmpdir):
    script = _Script(["x", "9", "2", str(tmpdir.join("nothing.key")), "7"])
    Menu(script.ask, script.say).run()
    out = script.output()
    assert "Not a number: 'x'" in out
    assert "Unknown option: 9" in out
    assert "Error:" in out


def test_wrong_key_kind(tmpdir):
    pub_file = str(tmpdir.join("pub.key"))
    store.save_key(PublicKey(3233, 17), pub_file)
    script = _Script(["2", pub_file, "7"])
    menu = Menu(script.ask, script.say)
    menu.run()
    assert menu.priv is None
    assert "not a PrivateKey" in script.output()


def test_self_tests(monkeypatch):
    calls = []

    def fake_run(cases, source=None, report=None):
        calls.append(cases)
        report("All tests succeeded...")

    monkeypatch.setattr(selftest, "run", fake_run)
    script = _Script(["6", "3", "7"])
    Menu(script.ask, script.say).run()
    assert calls == [3]
    assert "All tests succeeded..." in script.output()


def test_main_eof(monkeypatch):
    def eof(prompt):
        raise EOFError()

    monkeypatch.setattr("builtins.input", eof)
    assert main() == 0


def test_bad_files_are_reported(tmpdir):
    import msgpack

    pub_file = str(tmpdir.join("pub.key"))
    store.save_key(PublicKey(3233, 17), pub_file)
    bad_key = tmpdir.join("bad.key")
    bad_key.write_binary(msgpack.packb(msgpack.ExtType(1, msgpack.packb([1, 2, 3]))))
    binary = tmpdir.join("binary.txt")
    binary.write_binary(b"\xff\xfe\x80abc")

    script = _Script([
        "3", str(bad_key),
        "3", pub_file,
        "4", str(binary),
        "7",
    ])
    menu = Menu(script.ask, script.say)
    menu.run()

    out = script.output()
    assert "does not hold a packed key" in out
    assert "is not a text file" in out
    assert menu.pub == PublicKey(3233, 17)
