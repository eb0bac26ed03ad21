from reflex.stems import KEY_SEPARATOR, PorterTokenizer, ngrams, term_key, unique_sorted


def test_tokenize_drops_punctuation_and_stopwords():
    tok = PorterTokenizer()
    assert tok.tokenize("Well, good morning to you!") == ["good", "morning"]


def test_stemming_folds_inflections():
    tok = PorterTokenizer()
    assert tok.tokenize_and_stem("pizzas") == tok.tokenize_and_stem("pizza")
    assert tok.tokenize_and_stem("Mornings") == tok.tokenize_and_stem("morning")


def test_term_key_is_order_insensitive():
    tok = PorterTokenizer()
    a = unique_sorted(tok.tokenize_and_stem("good morning"))
    b = unique_sorted(tok.tokenize_and_stem("morning, good"))
    assert term_key(a, "good morning") == term_key(b, "morning, good")
    assert KEY_SEPARATOR in term_key(a, "good morning")


def test_term_key_falls_back_to_literal_text():
    tok = PorterTokenizer()
    assert tok.tokenize_and_stem(":-D") == []
    assert term_key([], ":-D") == ":-d"
    # only stopwords left: still literal
    assert tok.tokenize_and_stem("the") == []


def test_unique_sorted_dedupes():
    assert unique_sorted(["b", "a", "b"]) == ["a", "b"]


def test_ngrams():
    stems = ["a", "b", "c"]
    assert ngrams(stems, 1) == ["a", "b", "c"]
    assert ngrams(stems, 2) == ["a,b", "b,c"]
    assert ngrams(stems, 3) == ["a,b,c"]
    assert ngrams(stems, 4) == []
    assert ngrams(stems, 0) == []
