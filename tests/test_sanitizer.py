from utils.sanitizer import process_text_area, sanitize_name, sanitize_text, sanitize_url


def test_text_area_splits_lines_and_strips_bullets():
    text = "- two cups chana\r\n-1 tsp pepper\n\n  - salt to taste  \nfresh mint"
    assert process_text_area(text) == ['two cups chana', '1 tsp pepper', 'salt to taste', 'fresh mint']


def test_text_area_keeps_inner_dashes():
    assert process_text_area('stir-fry the ginger-garlic') == ['stir-fry the ginger-garlic']


def test_empty_text_area():
    assert process_text_area('') == []
    assert process_text_area(None) == []


def test_sanitize_name_collapses_whitespace():
    assert sanitize_name('  Sushi \t  Rice\x00 ') == 'Sushi Rice'
    assert sanitize_name('   ') == ''


def test_sanitize_text_truncates():
    assert sanitize_text('a' * 20, max_length=5) == 'aaaaa'


def test_sanitize_url():
    assert sanitize_url('https://www.gimmesomeoven.com/sushi-rice/') == 'https://www.gimmesomeoven.com/sushi-rice/'
    assert sanitize_url('javascript:alert(1)') == ''
    assert sanitize_url('www.example.com') == ''
    assert sanitize_url(None) == ''
